"""
Schemas for POST /api/analyze and POST /api/rename.

Text mode posts AnalyzeTextRequest as JSON. File mode posts multipart form
fields (file, model) and is validated in the route, not here.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from meeting_analyzer.schemas.analysis import Analysis


class TranscriptLine(BaseModel):
    """One diarized utterance: speaker label and what was said."""

    speaker: str
    text: str

    class Config:
        frozen = True


class LabeledTranscript(BaseModel):
    """Transcript produced on the file-upload path."""

    speakers: list[str] = Field(..., description="Unique speaker labels in first-seen order")
    transcript: list[TranscriptLine]

    class Config:
        frozen = True


class AnalyzeTextRequest(BaseModel):
    """Request body for POST /api/analyze (application/json)."""

    transcript: str | None = Field(None, description="Transcript text with speaker labels, e.g. 'Sarah: ...'")
    model: str | None = Field(None, description="Model id; must be one of the allowed models. Defaults when omitted")


class AnalyzeResponse(BaseModel):
    """Response body for POST /api/analyze. labeledTranscript only in file mode."""

    analysis: Analysis
    labeled_transcript: LabeledTranscript | None = Field(None, alias="labeledTranscript")

    class Config:
        populate_by_name = True


class RenameRequest(BaseModel):
    """Request body for POST /api/rename."""

    analysis: Analysis
    speaker_names: dict[str, str] = Field(default_factory=dict, alias="speakerNames")
    labeled_transcript: LabeledTranscript | None = Field(None, alias="labeledTranscript")

    class Config:
        populate_by_name = True


class RenameResponse(BaseModel):
    analysis: Analysis
    labeled_transcript: LabeledTranscript | None = Field(None, alias="labeledTranscript")

    class Config:
        populate_by_name = True


class ModelOption(BaseModel):
    id: str
    name: str


class ErrorResponse(BaseModel):
    """Body of every failure response."""

    error: str
