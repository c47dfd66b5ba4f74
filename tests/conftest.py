import json

import pytest

from meeting_analyzer.errors import ModelInvocationError
from meeting_analyzer.llm.base import LanguageModel
from meeting_analyzer.schemas.analysis import Analysis
from meeting_analyzer.transcription.base import (
    DiarizedUtterance,
    TranscriptionEngine,
    TranscriptionResult,
)

SAMPLE_ANALYSIS = {
    "summary": "Speaker A led a sync on the authentication module; Speaker B reported a schema delay.",
    "speaker_dominance": [
        {"speaker": "Speaker A", "percentage": 60},
        {"speaker": "Speaker B", "percentage": 40},
    ],
    "key_sentiments": [
        {"speaker": "Speaker B", "sentiment": "Negative", "quote": "We hit a snag, SpeakerAlpha knows."},
    ],
    "interruptions": [
        {"interrupter": "Speaker A", "interrupted": "Speaker B", "context": "the new encryption library we had to"},
    ],
    "action_items": [
        {"task": "Speaker B to fix the schema", "assigned_to": "Speaker B", "due_date": "Not specified"},
        {"task": "Book the demo room", "assigned_to": "Unassigned", "due_date": "the 15th"},
    ],
}


class FakeLanguageModel(LanguageModel):
    def __init__(self, reply=None, error=None):
        self.reply = json.dumps(SAMPLE_ANALYSIS) if reply is None else reply
        self.error = error
        self.calls = []

    async def generate_json(self, model, instructions, content):
        self.calls.append({"model": model, "instructions": instructions, "content": content})
        if self.error is not None:
            raise self.error
        return self.reply


class FakeTranscriptionEngine(TranscriptionEngine):
    def __init__(self, result=None):
        self.result = result or TranscriptionResult(
            status="completed",
            utterances=[
                DiarizedUtterance(speaker="A", text="Let's kick off."),
                DiarizedUtterance(speaker="B", text="We hit a snag."),
                DiarizedUtterance(speaker="A", text="What do you need?"),
            ],
        )
        self.calls = []

    async def transcribe(self, media, filename):
        self.calls.append((len(media), filename))
        return self.result


@pytest.fixture
def sample_analysis():
    return Analysis.model_validate(SAMPLE_ANALYSIS)


@pytest.fixture
def fake_llm():
    return FakeLanguageModel()


@pytest.fixture
def failing_llm():
    return FakeLanguageModel(error=ModelInvocationError("Gemini error: 401"))


@pytest.fixture
def fake_engine():
    return FakeTranscriptionEngine()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    # Keep a developer's .env and real keys out of the tests.
    monkeypatch.chdir(tmp_path)
    for key in (
        "GOOGLE_API_KEY",
        "ASSEMBLYAI_API_KEY",
        "LOG_FILE",
        "ANALYZE_TIMEOUT_SECONDS",
        "MAX_UPLOAD_BYTES",
        "DEFAULT_MODEL",
    ):
        monkeypatch.delenv(key, raising=False)
