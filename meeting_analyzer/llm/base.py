"""
LanguageModel: abstract interface for the generative-language collaborator.

One call per request: a fixed instruction prompt plus the formatted transcript
in, raw response text out. Parsing the text is the caller's job.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class LanguageModel(ABC):
    @abstractmethod
    async def generate_json(self, model: str, instructions: str, content: str) -> str:
        """
        Ask `model` for a JSON response to `content` under `instructions`.
        Returns the response text unparsed. Raises ModelInvocationError on any
        network, auth or protocol failure.
        """
        ...
