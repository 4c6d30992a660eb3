"""Building blocks of the generation client: types, errors, schema translation, providers."""

from ytsummary.llm.errors import ErrorKind, GenerationError, classify_error
from ytsummary.llm.schema import to_provider_schema
from ytsummary.llm.types import AttemptRecord, GenerationResult, LLMResponse

__all__ = [
    "AttemptRecord",
    "ErrorKind",
    "GenerationError",
    "GenerationResult",
    "LLMResponse",
    "classify_error",
    "to_provider_schema",
]
