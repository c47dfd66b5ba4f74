"""Application configuration. Loads from env vars."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Secrets: missing keys do not stop startup; requests fail at the first external call.
    GOOGLE_API_KEY: str = ""
    ASSEMBLYAI_API_KEY: str = ""

    # Language model (Gemini generateContent REST API)
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    ALLOWED_MODELS: list[str] = ["gemini-1.5-flash", "gemini-1.5-pro"]
    DEFAULT_MODEL: str = "gemini-1.5-flash"
    LLM_TEMPERATURE: float = 0.2
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Transcription + diarization (AssemblyAI v2 REST API)
    ASSEMBLYAI_BASE_URL: str = "https://api.assemblyai.com"
    TRANSCRIPTION_POLL_INTERVAL: float = 3.0  # seconds between status polls
    TRANSCRIPTION_HTTP_TIMEOUT_SECONDS: float = 60.0  # per HTTP call, upload included

    # Uploads: 50MB ceiling, audio/video extensions only
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    ALLOWED_UPLOAD_EXTENSIONS: list[str] = [".mp3", ".wav", ".m4a", ".mp4", ".mov", ".webm"]

    # End-to-end bound on transcription + inference for one request
    ANALYZE_TIMEOUT_SECONDS: float = 300.0

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path empty = console only.
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # e.g. "logs/app.log"

    class Config:
        env_file = ".env"
        extra = "ignore"


# Display names for the model picker.
MODEL_DISPLAY_NAMES: dict[str, str] = {
    "gemini-1.5-flash": "Gemini 1.5 Flash (Fast)",
    "gemini-1.5-pro": "Gemini 1.5 Pro (Advanced)",
}


def get_settings() -> Settings:
    return Settings()
