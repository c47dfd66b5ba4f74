"""
Build a LabeledTranscript from diarized utterances.

Service labels ("A", "B") become display labels ("Speaker A", "Speaker B").
The speaker list is deduplicated and keeps first-seen order.
"""
from __future__ import annotations

from typing import Iterable

from meeting_analyzer.schemas.analyze import LabeledTranscript, TranscriptLine
from meeting_analyzer.transcription.base import DiarizedUtterance

SPEAKER_PREFIX = "Speaker "


def speaker_label(raw_label: str) -> str:
    return f"{SPEAKER_PREFIX}{raw_label}"


def build_labeled_transcript(utterances: Iterable[DiarizedUtterance]) -> LabeledTranscript:
    lines = [TranscriptLine(speaker=speaker_label(u.speaker), text=u.text) for u in utterances]
    speakers = list(dict.fromkeys(line.speaker for line in lines))
    return LabeledTranscript(speakers=speakers, transcript=lines)
