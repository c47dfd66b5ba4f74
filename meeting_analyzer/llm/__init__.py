"""Language model: swappable generative-language clients."""
from .base import LanguageModel
from .gemini import GeminiLanguageModel

__all__ = ["GeminiLanguageModel", "LanguageModel"]
