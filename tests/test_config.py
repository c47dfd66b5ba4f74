import logging

from meeting_analyzer.config import Settings, get_settings
from meeting_analyzer.logging_setup import configure_logging


def test_defaults():
    settings = get_settings()
    assert settings.MAX_UPLOAD_BYTES == 50 * 1024 * 1024
    assert settings.DEFAULT_MODEL in settings.ALLOWED_MODELS
    assert ".webm" in settings.ALLOWED_UPLOAD_EXTENSIONS
    assert settings.GOOGLE_API_KEY == ""


def test_env_override(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "abc")
    monkeypatch.setenv("ALLOWED_MODELS", '["gemini-1.5-pro"]')
    settings = get_settings()
    assert settings.GOOGLE_API_KEY == "abc"
    assert settings.ALLOWED_MODELS == ["gemini-1.5-pro"]


def test_configure_logging_with_file(tmp_path):
    log_path = tmp_path / "logs" / "app.log"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        result = configure_logging(Settings(LOG_LEVEL="debug", LOG_FILE=str(log_path)))
        assert result == str(log_path)
        assert root.level == logging.DEBUG
        logging.getLogger("meeting_analyzer.test").info("hello file")
        for handler in root.handlers:
            handler.flush()
        assert "hello file" in log_path.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        root.propagate = True
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            logging.getLogger(name).handlers = []
            logging.getLogger(name).propagate = True
