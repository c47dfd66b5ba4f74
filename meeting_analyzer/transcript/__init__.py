"""Transcript handling: model-input formatting and diarized labeling."""
from .formatter import format_line, format_transcript
from .labeling import build_labeled_transcript, speaker_label

__all__ = ["build_labeled_transcript", "format_line", "format_transcript", "speaker_label"]
