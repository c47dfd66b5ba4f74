import asyncio
import json

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from conftest import SAMPLE_ANALYSIS, FakeLanguageModel, FakeTranscriptionEngine
from meeting_analyzer.errors import InvalidInputError, ModelInvocationError
from meeting_analyzer.main import app, get_language_model, get_transcription_engine, limit_body
from meeting_analyzer.transcription.base import TranscriptionResult

TRANSCRIPT = "Sarah: Okay team, let's kick off.\nMark: We hit a snag with the schema."


@pytest.fixture
def llm():
    return FakeLanguageModel()


@pytest.fixture
def engine():
    return FakeTranscriptionEngine()


@pytest.fixture
def client(llm, engine):
    app.dependency_overrides[get_language_model] = lambda: llm
    app.dependency_overrides[get_transcription_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_index_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Meeting Analyzer" in resp.text


def _script_block(page, start, end):
    return page[page.index(start):page.index(end, page.index(start))]


def test_index_page_drops_stale_rename_results(client):
    page = client.get("/").text
    analyze_fn = _script_block(page, "async function analyze()", "function onRename")
    reset_handler = _script_block(page, "$(\"reset\").addEventListener", "loadModels().then")
    rename_fn = _script_block(page, "function onRename", "async function loadModels")

    # A debounced rename must not fire after a new analysis or a reset.
    assert "cancelRename();" in analyze_fn
    assert "cancelRename();" in reset_handler
    assert "clearTimeout(renameTimer);" in _script_block(page, "function cancelRename()", "function setState")
    # Responses to superseded requests are ignored.
    assert "if (seq !== renameSeq) return;" in rename_fn
    assert "if (!state.analysis) return;" in rename_fn
    assert "if (seq !== analyzeSeq) return;" in analyze_fn


def test_models(client):
    ids = [m["id"] for m in client.get("/api/models").json()]
    assert ids == ["gemini-1.5-flash", "gemini-1.5-pro"]


def test_analyze_text_returns_analysis(client, llm):
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT, "model": "gemini-1.5-pro"})
    assert resp.status_code == 200
    body = resp.json()
    assert body == {"analysis": SAMPLE_ANALYSIS}
    assert llm.calls[0]["content"] == TRANSCRIPT
    assert llm.calls[0]["model"] == "gemini-1.5-pro"


def test_analyze_text_default_model(client, llm):
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT})
    assert resp.status_code == 200
    assert llm.calls[0]["model"] == "gemini-1.5-flash"


@pytest.mark.parametrize("payload", [{"transcript": ""}, {"transcript": "   "}, {"model": "gemini-1.5-flash"}])
def test_analyze_text_requires_transcript(client, llm, payload):
    resp = client.post("/api/analyze", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Transcript is required."
    assert llm.calls == []


def test_analyze_rejects_unknown_model(client):
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT, "model": "gpt-4o"})
    assert resp.status_code == 400
    assert "Unsupported model" in resp.json()["error"]


def test_analyze_rejects_invalid_json_body(client):
    resp = client.post("/api/analyze", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_analyze_unsupported_content_type(client):
    resp = client.post("/api/analyze", content=TRANSCRIPT, headers={"Content-Type": "text/plain"})
    assert resp.status_code == 415
    assert "error" in resp.json()


def test_analyze_model_returns_non_json(client, llm):
    llm.reply = "I'm sorry, I can't produce JSON today."
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT})
    assert resp.status_code == 500
    assert "not valid JSON" in resp.json()["error"]
    assert "analysis" not in resp.json()


def test_analyze_model_returns_wrong_shape(client, llm):
    llm.reply = json.dumps({"summary": "only a summary"})
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT})
    assert resp.status_code == 500
    assert "analysis shape" in resp.json()["error"]


def test_analyze_model_invocation_failure(client, llm):
    llm.error = ModelInvocationError("Gemini error: 401")
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Gemini error: 401"}


def test_analyze_timeout(client, llm, monkeypatch):
    import asyncio

    async def slow(model, instructions, content):
        await asyncio.sleep(5)

    monkeypatch.setenv("ANALYZE_TIMEOUT_SECONDS", "0.01")
    llm.generate_json = slow
    resp = client.post("/api/analyze", json={"transcript": TRANSCRIPT})
    assert resp.status_code == 504
    assert "timed out" in resp.json()["error"]


def test_analyze_file_returns_labeled_transcript(client, llm, engine):
    resp = client.post(
        "/api/analyze",
        files={"file": ("standup.mp3", b"ID3fake-audio", "audio/mpeg")},
        data={"model": "gemini-1.5-flash"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["analysis"] == SAMPLE_ANALYSIS
    assert body["labeledTranscript"]["speakers"] == ["Speaker A", "Speaker B"]
    assert body["labeledTranscript"]["transcript"][1] == {"speaker": "Speaker B", "text": "We hit a snag."}
    assert engine.calls == [(len(b"ID3fake-audio"), "standup.mp3")]
    assert llm.calls[0]["content"].splitlines()[0] == "Speaker A: Let's kick off."


def test_analyze_file_missing(client):
    resp = client.post("/api/analyze", files={"other": ("x.txt", b"x", "text/plain")}, data={"model": "gemini-1.5-flash"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "A media file is required."


def test_analyze_file_bad_extension(client, engine):
    resp = client.post("/api/analyze", files={"file": ("notes.pdf", b"%PDF", "application/pdf")})
    assert resp.status_code == 400
    assert "Unsupported file type" in resp.json()["error"]
    assert engine.calls == []


def test_analyze_file_too_large(client, engine, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "8")
    resp = client.post("/api/analyze", files={"file": ("call.wav", b"0123456789", "audio/wav")})
    assert resp.status_code == 400
    assert "too large" in resp.json()["error"]
    assert engine.calls == []


def test_analyze_file_oversize_rejected_before_body_is_read(llm, engine, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "1024")
    consumed = []

    async def counting_app(scope, receive, send):
        async def counting_receive():
            message = await receive()
            if message["type"] == "http.request":
                consumed.append(len(message.get("body", b"")))
            return message

        await app(scope, counting_receive, send)

    app.dependency_overrides[get_language_model] = lambda: llm
    app.dependency_overrides[get_transcription_engine] = lambda: engine
    try:
        resp = TestClient(counting_app).post(
            "/api/analyze",
            files={"file": ("big.wav", b"\0" * (2 * 1024 * 1024), "audio/wav")},
        )
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 400
    assert resp.json()["error"] == "File is too large. Max file size: 1KB"
    assert sum(consumed) == 0
    assert engine.calls == []


def test_limit_body_stops_reading_chunked_upload():
    pulled = []

    async def receive():
        pulled.append(1)
        return {"type": "http.request", "body": b"x" * 1000, "more_body": True}

    request = Request({"type": "http", "method": "POST", "headers": []}, receive)
    limited = limit_body(request, 4096, 1024)

    async def drain():
        async for _ in limited.stream():
            pass

    with pytest.raises(InvalidInputError) as exc:
        asyncio.run(drain())
    assert len(pulled) == 5
    assert exc.value.message == "File is too large. Max file size: 1KB"


def test_analyze_file_transcription_failure(client, engine, llm):
    engine.result = TranscriptionResult(status="error", error="Audio file is corrupt")
    resp = client.post("/api/analyze", files={"file": ("call.m4a", b"data", "audio/mp4")})
    assert resp.status_code == 500
    assert "Audio file is corrupt" in resp.json()["error"]
    assert llm.calls == []


def test_rename_endpoint(client):
    resp = client.post(
        "/api/rename",
        json={
            "analysis": SAMPLE_ANALYSIS,
            "speakerNames": {"Speaker A": "Sarah", "Speaker B": "Mark"},
            "labeledTranscript": {
                "speakers": ["Speaker A", "Speaker B"],
                "transcript": [{"speaker": "Speaker A", "text": "Speaker B?"}],
            },
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [d["speaker"] for d in body["analysis"]["speaker_dominance"]] == ["Sarah", "Mark"]
    assert body["analysis"]["summary"] == SAMPLE_ANALYSIS["summary"]
    assert body["labeledTranscript"]["speakers"] == ["Sarah", "Mark"]
    assert body["labeledTranscript"]["transcript"][0] == {"speaker": "Sarah", "text": "Speaker B?"}


def test_rename_endpoint_without_transcript(client):
    resp = client.post("/api/rename", json={"analysis": SAMPLE_ANALYSIS, "speakerNames": {"Speaker A": "Sarah"}})
    assert resp.status_code == 200
    assert "labeledTranscript" not in resp.json()


def test_rename_endpoint_invalid_body(client):
    resp = client.post("/api/rename", json={"speakerNames": {}})
    assert resp.status_code == 400
    assert "analysis" in resp.json()["error"]
