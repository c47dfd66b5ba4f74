"""Pydantic schemas for the analysis result and API request/response."""
from meeting_analyzer.schemas.analysis import (
    ActionItem,
    Analysis,
    Interruption,
    KeySentiment,
    SpeakerDominance,
)
from meeting_analyzer.schemas.analyze import (
    AnalyzeResponse,
    AnalyzeTextRequest,
    ErrorResponse,
    LabeledTranscript,
    ModelOption,
    RenameRequest,
    RenameResponse,
    TranscriptLine,
)

__all__ = [
    "ActionItem",
    "Analysis",
    "AnalyzeResponse",
    "AnalyzeTextRequest",
    "ErrorResponse",
    "Interruption",
    "KeySentiment",
    "LabeledTranscript",
    "ModelOption",
    "RenameRequest",
    "RenameResponse",
    "SpeakerDominance",
    "TranscriptLine",
]
