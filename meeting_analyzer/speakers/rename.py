"""
Speaker rename: substitute user-chosen display names for speaker labels.

Only fields that name a speaker are rewritten (speaker, interrupter,
interrupted, assigned_to). Free text (summary, quote, context, task,
due_date) is never touched. A label matches only as a whole token, i.e. not
preceded or followed by a word character, so "Speaker A" does not match
inside "Speaker AB" or "SpeakerAlpha". Labels are regex-escaped.

All labels are substituted in a single pass, so a display name is never
re-substituted by another label within one call. Renaming an already renamed
result again is a no-op unless a display name equals another original label;
that case is left unspecified.
"""
from __future__ import annotations

import re
from typing import Iterable, Mapping

from meeting_analyzer.schemas.analysis import Analysis
from meeting_analyzer.schemas.analyze import LabeledTranscript

SpeakerNameMap = Mapping[str, str]


def default_name_map(speakers: Iterable[str]) -> dict[str, str]:
    """Identity map: every label displayed as itself."""
    return {speaker: speaker for speaker in speakers}


def parse_name_assignments(assignments: Iterable[str]) -> dict[str, str]:
    """Parse "Speaker A=Sarah" strings. Raises ValueError on a missing '=' or empty label."""
    names: dict[str, str] = {}
    for item in assignments:
        label, sep, name = item.partition("=")
        label = label.strip()
        if not sep or not label:
            raise ValueError(f"Expected LABEL=NAME, got {item!r}")
        names[label] = name.strip()
    return names


def effective_names(name_map: SpeakerNameMap) -> dict[str, str]:
    """Drop blank labels; a blank display name falls back to the label itself."""
    resolved: dict[str, str] = {}
    for label, name in name_map.items():
        if not label:
            continue
        resolved[label] = (name or "").strip() or label
    return resolved


class SpeakerRenamer:
    """Compiled substitution for one name map. Cheap to build; rebuild when the map changes."""

    def __init__(self, name_map: SpeakerNameMap) -> None:
        names = effective_names(name_map)
        self._names = {label: name for label, name in names.items() if label != name}
        self._pattern: re.Pattern[str] | None = None
        if self._names:
            # Longest first so overlapping labels prefer the longer match.
            labels = sorted(self._names, key=len, reverse=True)
            alternation = "|".join(re.escape(label) for label in labels)
            self._pattern = re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")

    @property
    def is_identity(self) -> bool:
        return self._pattern is None

    def substitute(self, text: str) -> str:
        if self._pattern is None or not text:
            return text
        return self._pattern.sub(lambda m: self._names[m.group(0)], text)

    def rename_analysis(self, analysis: Analysis) -> Analysis:
        if self.is_identity:
            return analysis.model_copy(deep=True)
        sub = self.substitute
        return analysis.model_copy(
            update={
                "speaker_dominance": [
                    item.model_copy(update={"speaker": sub(item.speaker)}) for item in analysis.speaker_dominance
                ],
                "key_sentiments": [
                    item.model_copy(update={"speaker": sub(item.speaker)}) for item in analysis.key_sentiments
                ],
                "interruptions": [
                    item.model_copy(
                        update={"interrupter": sub(item.interrupter), "interrupted": sub(item.interrupted)}
                    )
                    for item in analysis.interruptions
                ],
                "action_items": [
                    item.model_copy(update={"assigned_to": sub(item.assigned_to)}) for item in analysis.action_items
                ],
            }
        )

    def rename_transcript(self, labeled: LabeledTranscript) -> LabeledTranscript:
        if self.is_identity:
            return labeled.model_copy(deep=True)
        sub = self.substitute
        return labeled.model_copy(
            update={
                "speakers": [sub(speaker) for speaker in labeled.speakers],
                "transcript": [line.model_copy(update={"speaker": sub(line.speaker)}) for line in labeled.transcript],
            }
        )


def rename_analysis(analysis: Analysis, name_map: SpeakerNameMap) -> Analysis:
    """Return a new Analysis with speaker labels replaced. The input is not modified."""
    return SpeakerRenamer(name_map).rename_analysis(analysis)


def rename_transcript(labeled: LabeledTranscript, name_map: SpeakerNameMap) -> LabeledTranscript:
    """Return a new LabeledTranscript with speaker labels replaced. Utterance text is kept."""
    return SpeakerRenamer(name_map).rename_transcript(labeled)
