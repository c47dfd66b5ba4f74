"""Transcription: swappable transcription + diarization engines."""
from .base import DiarizedUtterance, TranscriptionEngine, TranscriptionResult
from .assemblyai import AssemblyAIEngine

__all__ = [
    "AssemblyAIEngine",
    "DiarizedUtterance",
    "TranscriptionEngine",
    "TranscriptionResult",
]
