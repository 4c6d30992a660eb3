"""Gemini generation client for the YouTube summarizer."""

from ytsummary.common import CLIENT_VERSION as __version__
from ytsummary.llm_client import (
    MODEL_CASCADE,
    GenerationClient,
    build_effective_cascade,
    generate_with_fallback,
)

__all__ = [
    "MODEL_CASCADE",
    "GenerationClient",
    "build_effective_cascade",
    "generate_with_fallback",
    "__version__",
]
