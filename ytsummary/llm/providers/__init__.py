from ytsummary.llm.providers.base import BaseLLMProvider
from ytsummary.llm.providers.gemini import GeminiProvider

__all__ = ["BaseLLMProvider", "GeminiProvider"]
