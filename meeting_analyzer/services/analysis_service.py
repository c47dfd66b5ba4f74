"""
Meeting analysis: transcript in, validated Analysis out.

- Text mode: the transcript string already carries speaker labels; sent as-is.
- File mode: media -> transcription with speaker labels -> LabeledTranscript
  -> formatted transcript -> same analysis call as text mode.

Both modes share one instruction prompt. The model's reply must be a JSON
object in the Analysis shape; anything else is an AnalysisParseError carrying
the parser/validator message. Nothing is repaired or retried.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from typing import Any, Awaitable, TypeVar

from pydantic import ValidationError

from meeting_analyzer.config import Settings, get_settings
from meeting_analyzer.errors import (
    AnalysisParseError,
    AnalysisTimeoutError,
    InvalidInputError,
    TranscriptionError,
)
from meeting_analyzer.llm.base import LanguageModel
from meeting_analyzer.schemas.analysis import Analysis
from meeting_analyzer.schemas.analyze import LabeledTranscript
from meeting_analyzer.transcript.formatter import format_transcript
from meeting_analyzer.transcript.labeling import build_labeled_transcript
from meeting_analyzer.transcription.base import STATUS_COMPLETED, TranscriptionEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYSIS_PROMPT = """You are an expert communication analyst specializing in corporate meeting dynamics and inclusivity.
Analyze the meeting transcript you are given and produce a neutral, unbiased analysis of the conversation flow.
Identify every speaker by the label used in the transcript.

Respond with exactly one valid JSON object and nothing else: no prose, no markdown, no code fences.

The JSON object must have this structure:
{
  "summary": "A brief, neutral summary of the meeting's purpose and outcome in 2-3 sentences.",
  "speaker_dominance": [
    { "speaker": "SpeakerName", "percentage": 45 }
  ],
  "key_sentiments": [
    { "speaker": "SpeakerName", "sentiment": "Positive" | "Negative" | "Neutral", "quote": "The exact quote that reflects this sentiment." }
  ],
  "interruptions": [
    { "interrupter": "SpeakerName1", "interrupted": "SpeakerName2", "context": "The phrase where the interruption likely occurred." }
  ],
  "action_items": [
    { "task": "The specific action item.", "assigned_to": "SpeakerName or 'Unassigned'", "due_date": "Mentioned due date or 'Not specified'" }
  ]
}

Rules:
- Derive speaker_dominance from each speaker's approximate word count. The percentages must add up to 100.
- sentiment must be exactly one of "Positive", "Negative" or "Neutral". Report only clear moments of strong sentiment.
- Report an interruption only where one speaker's sentence is clearly cut off mid-sentence by another.
- Report an action item only where an explicit, actionable task is stated. Use "Unassigned" when no owner is named and "Not specified" when no due date is mentioned.
- Use empty arrays when nothing qualifies.
"""

_CODE_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_CODE_FENCE_CLOSE = re.compile(r"\s*```\s*$")


# --- request validation ---

def resolve_model(model: str | None, settings: Settings | None = None) -> str:
    """Return the model id to use; the default when omitted. Raises InvalidInputError if not allowed."""
    settings = settings or get_settings()
    chosen = (model or "").strip() or settings.DEFAULT_MODEL
    if chosen not in settings.ALLOWED_MODELS:
        allowed = ", ".join(settings.ALLOWED_MODELS)
        raise InvalidInputError(f"Unsupported model '{chosen}'. Allowed models: {allowed}")
    return chosen


def check_upload_name(filename: str | None, settings: Settings | None = None) -> str:
    """Return the file's lowercase extension. Raises InvalidInputError if it is not an allowed media type."""
    settings = settings or get_settings()
    name = (filename or "").strip()
    if not name:
        raise InvalidInputError("A media file is required.")
    _, ext = os.path.splitext(name)
    ext = ext.lower()
    allowed = [e.lower() for e in settings.ALLOWED_UPLOAD_EXTENSIONS]
    if ext not in allowed:
        raise InvalidInputError(
            f"Unsupported file type '{ext or name}'. Please upload a valid audio or video file ({', '.join(allowed)})."
        )
    return ext


def format_size(num_bytes: int) -> str:
    """Human-readable size: "50MB", "1.5KB", "512 bytes"."""
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.3g}MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.3g}KB"
    return f"{num_bytes} bytes"


def check_upload_size(size: int, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    if size > settings.MAX_UPLOAD_BYTES:
        raise InvalidInputError(f"File is too large. Max file size: {format_size(settings.MAX_UPLOAD_BYTES)}")
    if size == 0:
        raise InvalidInputError("Uploaded file is empty.")


# --- response validation ---

def _strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = _CODE_FENCE_OPEN.sub("", raw)
        raw = _CODE_FENCE_CLOSE.sub("", raw)
    return raw


def _describe_validation_error(err: ValidationError) -> str:
    parts = []
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "(root)"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_analysis(raw: str) -> Analysis:
    """
    Parse model output as an Analysis. Only a surrounding markdown code fence is
    tolerated; everything else must already be a valid Analysis JSON object.
    """
    text = _strip_code_fence(raw or "")
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Analysis response was not valid JSON: %s", e)
        raise AnalysisParseError(f"Model response was not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise AnalysisParseError(f"Model response was not a JSON object (got {type(data).__name__})")

    try:
        return Analysis.model_validate(data)
    except ValidationError as e:
        detail = _describe_validation_error(e)
        logger.warning("Analysis response did not match the expected shape: %s", detail)
        raise AnalysisParseError(f"Model response did not match the analysis shape: {detail}") from e


# --- analysis chain ---

async def analyze_transcript(transcript: str, model: str, llm: LanguageModel) -> Analysis:
    """Send a speaker-labeled transcript to the model and validate the reply."""
    if not (transcript or "").strip():
        raise InvalidInputError("Transcript is required.")
    raw = await llm.generate_json(model, ANALYSIS_PROMPT, transcript)
    analysis = parse_analysis(raw)
    logger.info(
        "Analysis ready: speakers=%d sentiments=%d interruptions=%d action_items=%d",
        len(analysis.speaker_dominance),
        len(analysis.key_sentiments),
        len(analysis.interruptions),
        len(analysis.action_items),
    )
    total = analysis.dominance_total()
    if analysis.speaker_dominance and abs(total - 100) > 1:
        logger.info("Speaker dominance sums to %s, not 100", total)
    return analysis


async def transcribe_media(media: bytes, filename: str, engine: TranscriptionEngine) -> LabeledTranscript:
    """Run diarized transcription; fail unless it completed with speaker-labeled utterances."""
    result = await engine.transcribe(media, filename)
    if result.status != STATUS_COMPLETED:
        reason = result.error or f"status '{result.status}'"
        raise TranscriptionError(f"Transcription failed: {reason}")
    if not result.utterances:
        raise TranscriptionError("Transcription completed without speaker-labeled utterances")
    labeled = build_labeled_transcript(result.utterances)
    logger.info("Transcription: %d utterances, speakers=%s", len(labeled.transcript), labeled.speakers)
    return labeled


async def analyze_media(
    media: bytes,
    filename: str,
    model: str,
    engine: TranscriptionEngine,
    llm: LanguageModel,
) -> tuple[Analysis, LabeledTranscript]:
    """Transcription first, then analysis; the second call depends on the first."""
    labeled = await transcribe_media(media, filename, engine)
    analysis = await analyze_transcript(format_transcript(labeled.transcript), model, llm)
    return analysis, labeled


async def run_with_timeout(awaitable: Awaitable[T], timeout: float | None) -> T:
    """Bound the whole chain; the in-flight external call is cancelled on expiry."""
    if not timeout or timeout <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Analysis timed out after %ss", timeout)
        raise AnalysisTimeoutError(f"Analysis timed out after {timeout:g} seconds") from e
