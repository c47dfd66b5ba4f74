"""
TranscriptionEngine: abstract interface for a transcription + diarization service.

Implementations upload a media file, request per-utterance speaker labels and
wait for a terminal status. AssemblyAIEngine is the production implementation.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class DiarizedUtterance:
    """One utterance as returned by the service. speaker is the raw label (e.g. "A")."""

    speaker: str
    text: str
    start_ms: int | None = None
    end_ms: int | None = None


@dataclass
class TranscriptionResult:
    """Terminal result of one transcription job."""

    status: str
    utterances: list[DiarizedUtterance] = field(default_factory=list)
    error: str | None = None
    transcript_id: str | None = None


class TranscriptionEngine(ABC):
    """Abstract transcription engine. transcribe() is async and returns only terminal results."""

    @abstractmethod
    async def transcribe(self, media: bytes, filename: str) -> TranscriptionResult:
        """
        Transcribe one media file with speaker labels.
        Raises TranscriptionError when the service cannot be reached or rejects the request.
        """
        ...
