from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ytsummary.llm.errors import ErrorKind


class LLMResponse(BaseModel):
    """Wrapper for a validated structured response with metadata."""
    data: Any  # Will be the validated Pydantic model instance
    model_used: str


class TokenUsage(BaseModel):
    """Token counts reported by the provider (any of them may be missing)."""
    prompt_tokens: Optional[int] = None
    response_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ProviderResponse(BaseModel):
    """Raw outcome of a single provider call."""
    text: str = ""
    usage: Optional[TokenUsage] = None


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"


class AttemptRecord(BaseModel):
    """Observability record emitted once per model attempt."""
    model: str
    outcome: AttemptOutcome
    error_kind: Optional[ErrorKind] = None
    latency_ms: int = 0
    prompt_chars: int = 0
    response_chars: int = 0
    usage: Optional[TokenUsage] = None


class GenerationRequest(BaseModel):
    """One call to the generation client. Built fresh per call, never persisted."""
    prompt: str
    response_model: Optional[Any] = Field(
        None, description="Output-shape contract: a Pydantic model class or a JSON-schema dict"
    )
    preferred_model: Optional[str] = None
    timeout_ms: Optional[float] = Field(None, ge=0)
    generation_config: Dict[str, Any] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    """Successful generation plus the attempt log that led to it."""
    text: str
    model_used: str
    attempts: List[AttemptRecord] = Field(default_factory=list)
    usage: Optional[TokenUsage] = None
