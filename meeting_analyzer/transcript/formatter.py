"""Transcript formatting: speaker-tagged lines as language-model input."""
from __future__ import annotations

from typing import Iterable

from meeting_analyzer.schemas.analyze import TranscriptLine


def format_line(line: TranscriptLine) -> str:
    return f"{line.speaker}: {line.text}"


def format_transcript(lines: Iterable[TranscriptLine]) -> str:
    """
    One "<speaker>: <text>" line per utterance, joined by a single newline.
    Order is preserved; text is not normalized.
    """
    return "\n".join(format_line(line) for line in lines)
