from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ytsummary.llm.types import ProviderResponse


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        model_name: str,
        generation_config: Optional[Dict[str, Any]] = None,
        api_key: Optional[str] = None
    ) -> ProviderResponse:
        """
        Issue one generation call.

        Args:
            prompt: The prompt to send
            model_name: Name of the model to use
            generation_config: Provider generation parameters (may carry a response schema)
            api_key: API key for this call

        Returns:
            ProviderResponse with the generated text (possibly empty) and token usage

        Raises:
            ProviderHTTPError or requests exceptions; classification is the caller's job
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the provider (e.g., 'gemini')."""
        pass
