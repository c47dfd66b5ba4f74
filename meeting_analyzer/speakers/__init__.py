"""
Speaker display names.

Speaker labels ("Speaker A", "Speaker B") come from diarization or from the
transcript itself. Users assign display names; the analysis is re-rendered
with those names without another model call.
"""
from __future__ import annotations

from meeting_analyzer.speakers.rename import (
    SpeakerNameMap,
    SpeakerRenamer,
    default_name_map,
    effective_names,
    parse_name_assignments,
    rename_analysis,
    rename_transcript,
)

__all__ = [
    "SpeakerNameMap",
    "SpeakerRenamer",
    "default_name_map",
    "effective_names",
    "parse_name_assignments",
    "rename_analysis",
    "rename_transcript",
]
