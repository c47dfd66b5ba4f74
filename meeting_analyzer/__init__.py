"""Meeting analyzer: transcript analysis over external transcription and language models."""

__version__ = "0.1.0"
