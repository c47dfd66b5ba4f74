"""Plain-text rendering of an Analysis as titled cards."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from meeting_analyzer.schemas.analysis import Analysis
from meeting_analyzer.schemas.analyze import LabeledTranscript

NO_ACTION_ITEMS = "No specific action items were identified."
NO_SENTIMENTS = "No strong sentiments were identified."
NO_INTERRUPTIONS = "No clear interruptions were identified."

_BAR_WIDTH = 20


@dataclass
class Card:
    title: str
    lines: List[str] = field(default_factory=list)


def _clean_text(value: str) -> str:
    return " ".join(value.split())


def _percent(value: float) -> str:
    return f"{value:g}%"


def _bar(percentage: float) -> str:
    filled = int(round(max(0.0, min(percentage, 100.0)) / 100 * _BAR_WIDTH))
    return "#" * filled + "." * (_BAR_WIDTH - filled)


def build_cards(analysis: Analysis) -> List[Card]:
    cards = [Card("Meeting Summary", [_clean_text(analysis.summary)])]

    dominance = Card("Speaker Dominance")
    for item in analysis.speaker_dominance:
        dominance.lines.append(f"{item.speaker:<20} {_bar(item.percentage)} {_percent(item.percentage)}")
    total = analysis.dominance_total()
    if analysis.speaker_dominance and abs(total - 100) > 1:
        dominance.lines.append(f"(percentages sum to {_percent(total)})")
    cards.append(dominance)

    actions = Card("Action Items")
    for item in analysis.action_items:
        actions.lines.append(f"- {_clean_text(item.task)} (Assigned: {item.assigned_to}, Due: {item.due_date})")
    if not analysis.action_items:
        actions.lines.append(NO_ACTION_ITEMS)
    cards.append(actions)

    sentiments = Card("Key Sentiments")
    for item in analysis.key_sentiments:
        sentiments.lines.append(f'"{_clean_text(item.quote)}" - {item.speaker} ({item.sentiment})')
    if not analysis.key_sentiments:
        sentiments.lines.append(NO_SENTIMENTS)
    cards.append(sentiments)

    interruptions = Card("Interruptions")
    for item in analysis.interruptions:
        interruptions.lines.append(f"- {item.interrupter} interrupted {item.interrupted}.")
        interruptions.lines.append(f'    Context: "...{_clean_text(item.context)}..."')
    if not analysis.interruptions:
        interruptions.lines.append(NO_INTERRUPTIONS)
    cards.append(interruptions)
    return cards


def render_card(card: Card) -> str:
    lines = [f"== {card.title} =="]
    lines.extend(card.lines)
    return "\n".join(lines)


def render_text(analysis: Analysis) -> str:
    return "\n\n".join(render_card(card) for card in build_cards(analysis))


def render_transcript(labeled: LabeledTranscript) -> str:
    card = Card("Identified Speakers", [", ".join(labeled.speakers)])
    card.lines.append("")
    card.lines.extend(f"{line.speaker}: {line.text}" for line in labeled.transcript)
    return render_card(card)
