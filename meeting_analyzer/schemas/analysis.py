"""
Analysis shape returned by the language model.

Field names match the JSON keys the analysis prompt asks for, so a model
response validates directly with Analysis.model_validate(). Unknown keys are
ignored; missing or mistyped keys are a validation error.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Sentiment = Literal["Positive", "Negative", "Neutral"]


class _Frozen(BaseModel):
    class Config:
        frozen = True
        extra = "ignore"


class SpeakerDominance(_Frozen):
    speaker: str
    percentage: float = Field(..., description="Share of words spoken; entries are expected to sum to 100")


class KeySentiment(_Frozen):
    speaker: str
    sentiment: Sentiment
    quote: str = Field(..., description="Exact quote reflecting the sentiment")


class Interruption(_Frozen):
    interrupter: str
    interrupted: str
    context: str = Field(..., description="Phrase where the interruption likely occurred")


class ActionItem(_Frozen):
    task: str
    assigned_to: str = Field(..., description="Speaker name or 'Unassigned'")
    due_date: str = Field(..., description="Mentioned due date or 'Not specified'")


class Analysis(_Frozen):
    """One structured meeting analysis. Produced once per request."""

    summary: str
    speaker_dominance: list[SpeakerDominance]
    key_sentiments: list[KeySentiment]
    interruptions: list[Interruption]
    action_items: list[ActionItem]

    def dominance_total(self) -> float:
        """Sum of dominance percentages (the model is asked for 100; not enforced)."""
        return sum(item.percentage for item in self.speaker_dominance)
