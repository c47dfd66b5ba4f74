"""
Error kinds raised along the analysis chain.

Each carries the HTTP status the /api/analyze boundary answers with.
None of them are retried; any failure discards the whole request.
"""
from __future__ import annotations


class AnalyzerError(RuntimeError):
    """Base for all request-level failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(AnalyzerError):
    """Missing transcript or file, bad model id, oversize or disallowed upload."""

    status_code = 400


class UnsupportedMediaTypeError(AnalyzerError):
    status_code = 415


class TranscriptionError(AnalyzerError):
    """Transcription service did not complete or returned no speaker data."""


class ModelInvocationError(AnalyzerError):
    """Network, auth or protocol failure calling the language model."""


class AnalysisParseError(AnalyzerError):
    """Model output was not JSON or did not match the Analysis shape."""


class AnalysisTimeoutError(AnalyzerError):
    status_code = 504
