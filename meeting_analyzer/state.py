"""
Application state for one analysis session.

AppState is immutable; every transition returns a new value and leaves the
previous one untouched. Speaker names live only here, never on disk.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Literal, Mapping

from meeting_analyzer.config import get_settings
from meeting_analyzer.schemas.analysis import Analysis
from meeting_analyzer.schemas.analyze import LabeledTranscript
from meeting_analyzer.speakers.rename import SpeakerRenamer, default_name_map

InputMode = Literal["text", "file"]


def _frozen_map(data: Mapping[str, str] | None = None) -> Mapping[str, str]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class AppState:
    mode: InputMode = "text"
    transcript: str = ""
    model: str = field(default_factory=lambda: get_settings().DEFAULT_MODEL)
    file_name: str | None = None
    is_loading: bool = False
    error: str | None = None
    analysis: Analysis | None = None
    labeled_transcript: LabeledTranscript | None = None
    speaker_names: Mapping[str, str] = field(default_factory=_frozen_map)

    @property
    def has_result(self) -> bool:
        return self.analysis is not None


def edit_transcript(state: AppState, transcript: str) -> AppState:
    return replace(state, mode="text", transcript=transcript, file_name=None)


def select_file(state: AppState, file_name: str | None) -> AppState:
    return replace(state, mode="file", file_name=file_name)


def select_model(state: AppState, model: str) -> AppState:
    return replace(state, model=model)


def start_analysis(state: AppState) -> AppState:
    """Clear any previous result or error and mark the request in flight."""
    return replace(
        state,
        is_loading=True,
        error=None,
        analysis=None,
        labeled_transcript=None,
        speaker_names=_frozen_map(),
    )


def analysis_succeeded(
    state: AppState,
    analysis: Analysis,
    labeled_transcript: LabeledTranscript | None = None,
) -> AppState:
    """Store the result; detected speakers start out displayed as themselves."""
    names = default_name_map(labeled_transcript.speakers) if labeled_transcript else {}
    return replace(
        state,
        is_loading=False,
        error=None,
        analysis=analysis,
        labeled_transcript=labeled_transcript,
        speaker_names=_frozen_map(names),
    )


def analysis_failed(state: AppState, message: str) -> AppState:
    """A failed request never keeps a partial result."""
    return replace(
        state,
        is_loading=False,
        error=message,
        analysis=None,
        labeled_transcript=None,
        speaker_names=_frozen_map(),
    )


def rename_speaker(state: AppState, label: str, name: str) -> AppState:
    """Assign a display name; an empty name reverts to the label."""
    names = dict(state.speaker_names)
    names[label] = name or label
    return replace(state, speaker_names=_frozen_map(names))


def reset(state: AppState) -> AppState:
    """Back to an empty session; the chosen model is kept."""
    return AppState(model=state.model)


def display_analysis(state: AppState) -> Analysis | None:
    if state.analysis is None:
        return None
    return SpeakerRenamer(state.speaker_names).rename_analysis(state.analysis)


def display_transcript(state: AppState) -> LabeledTranscript | None:
    if state.labeled_transcript is None:
        return None
    return SpeakerRenamer(state.speaker_names).rename_transcript(state.labeled_transcript)
