"""
Gemini generation client with a sequential model cascade.

Models are tried one at a time, cheapest first, until one returns non-empty
text. Failures are classified once (see ``llm.errors.classify_error``) and
the classification decides what happens next:

- rate limited / overloaded / timed out: try the next model
- empty response: try the next model
- network, authentication, invalid request, anything unknown: stop now

Usage:
    from ytsummary.llm_client import generate_with_fallback
    from ytsummary.models import TopicList

    text = generate_with_fallback(prompt, response_model=TopicList, timeout_ms=60000)
"""

import json
import time
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ValidationError

from ytsummary.common import env_list, get_api_key, setup_logging
from ytsummary.llm.errors import (
    ConfigurationError,
    ErrorKind,
    ExhaustedCascadeError,
    GenerationError,
    InvalidRequestError,
    ResponseValidationError,
    classify_error,
    error_for_kind,
)
from ytsummary.llm.providers.base import BaseLLMProvider
from ytsummary.llm.providers.gemini import GeminiProvider
from ytsummary.llm.schema import to_provider_schema
from ytsummary.llm.types import (
    AttemptOutcome,
    AttemptRecord,
    GenerationRequest,
    GenerationResult,
    LLMResponse,
)
from ytsummary.llm.utils import call_with_timeout, extract_json, repair_json_structure

logger = setup_logging(__name__)

RESET = "\033[0m"
DIM = "\033[2m"
GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
CYAN = "\033[36m"

# Earliest = cheapest/fastest, latest = most capable
DEFAULT_MODEL_CASCADE: Tuple[str, ...] = (
    "gemini-2.5-flash-lite",
    "gemini-2.5-flash",
    "gemini-2.5-pro",
)
MODEL_CASCADE: Tuple[str, ...] = env_list("GEMINI_MODEL_CASCADE", DEFAULT_MODEL_CASCADE)

API_KEY_ENV = "GEMINI_API_KEY"

AttemptHook = Callable[[AttemptRecord], None]


def is_valid_model(model: Optional[str], cascade: Sequence[str] = MODEL_CASCADE) -> bool:
    return bool(model) and model in cascade


def build_effective_cascade(preferred_model: Optional[str], cascade: Sequence[str] = MODEL_CASCADE) -> List[str]:
    """Move a valid preferred model to the front; otherwise keep the default order."""
    if preferred_model and not is_valid_model(preferred_model, cascade):
        logger.warning(f"Invalid preferred model {preferred_model!r}, using default cascade")
    if not is_valid_model(preferred_model, cascade):
        return list(cascade)
    return [preferred_model] + [m for m in cascade if m != preferred_model]


class GenerationClient:
    """
    Cascade controller around a single provider.

    Holds no per-request state: every call builds its own attempt log, so one
    client can serve concurrent requests.
    """

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        cascade: Iterable[str] = MODEL_CASCADE,
        on_attempt: Optional[AttemptHook] = None,
    ):
        self.provider = provider or GeminiProvider()
        self.cascade: Tuple[str, ...] = tuple(dict.fromkeys(cascade))
        self.on_attempt = on_attempt

        if not self.cascade:
            raise ConfigurationError("Model cascade is empty")

    def _emit(self, record: AttemptRecord, attempts: List[AttemptRecord]) -> None:
        attempts.append(record)
        logger.debug(f"attempt record: {record.model_dump_json()}")
        if self.on_attempt is None:
            return
        try:
            self.on_attempt(record)
        except Exception as e:
            logger.warning(f"Attempt hook failed for {record.model}: {e}")

    def generate(
        self,
        prompt: str,
        response_model: Optional[Any] = None,
        preferred_model: Optional[str] = None,
        timeout_ms: Optional[float] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Return the first non-empty text produced by the cascade."""
        return self.generate_detailed(
            prompt,
            response_model=response_model,
            preferred_model=preferred_model,
            timeout_ms=timeout_ms,
            generation_config=generation_config,
        ).text

    def generate_detailed(
        self,
        prompt: str,
        response_model: Optional[Any] = None,
        preferred_model: Optional[str] = None,
        timeout_ms: Optional[float] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        try:
            request = GenerationRequest(
                prompt=prompt,
                response_model=response_model,
                preferred_model=preferred_model,
                timeout_ms=timeout_ms,
                generation_config=dict(generation_config or {}),
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidRequestError(f"Invalid generation request: {e}") from e
        logger.info(
            f"{CYAN}Starting generation{RESET} preferredModel={request.preferred_model} "
            f"hasSchema={request.response_model is not None} promptLength={len(request.prompt)} "
            f"timeoutMs={request.timeout_ms}"
        )

        api_key = get_api_key(API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(f"{API_KEY_ENV} environment variable is not set")
        logger.debug(f"API key configured (length: {len(api_key)})")

        config = dict(request.generation_config)
        if request.response_model is not None:
            # Translated once, shared by every attempt
            config["responseMimeType"] = "application/json"
            config["responseSchema"] = to_provider_schema(request.response_model)

        models = build_effective_cascade(request.preferred_model, self.cascade)
        return self._run_cascade(request, models, config, api_key)

    def _run_cascade(
        self,
        request: GenerationRequest,
        models: List[str],
        config: Dict[str, Any],
        api_key: str,
    ) -> GenerationResult:
        attempts: List[AttemptRecord] = []
        attempted_models: List[str] = []
        last_kind: Optional[ErrorKind] = None
        last_error: Optional[str] = None
        prompt_chars = len(request.prompt)

        for model_name in models:
            attempted_models.append(model_name)
            logger.info(f"Attempting model: {model_name}")
            started = time.monotonic()

            try:
                response = call_with_timeout(
                    self.provider.generate,
                    request.timeout_ms,
                    request.prompt,
                    model_name,
                    config or None,
                    api_key,
                )
            except Exception as e:
                latency_ms = int((time.monotonic() - started) * 1000)
                kind = classify_error(e)
                last_kind, last_error = kind, str(e)
                outcome = AttemptOutcome.RETRYABLE_FAILURE if kind.retryable else AttemptOutcome.FATAL_FAILURE
                self._emit(AttemptRecord(
                    model=model_name,
                    outcome=outcome,
                    error_kind=kind,
                    latency_ms=latency_ms,
                    prompt_chars=prompt_chars,
                ), attempts)

                if not kind.retryable:
                    logger.error(f"{RED}Model {model_name} failed with non-retryable error ({kind}){RESET}: {e}")
                    raise _fatal_error(kind, e, model_name, attempts) from e

                logger.info(f"{YELLOW}Model {model_name} {kind}, trying next...{RESET}")
                continue

            latency_ms = int((time.monotonic() - started) * 1000)
            text = response.text
            usage = response.usage

            if text and text.strip():
                self._emit(AttemptRecord(
                    model=model_name,
                    outcome=AttemptOutcome.SUCCESS,
                    latency_ms=latency_ms,
                    prompt_chars=prompt_chars,
                    response_chars=len(text),
                    usage=usage,
                ), attempts)
                logger.info(
                    f"{GREEN}[{model_name}] SUCCESS{RESET} latency={latency_ms}ms promptChars={prompt_chars} "
                    f"promptTokens={_count(usage, 'prompt_tokens')} "
                    f"responseTokens={_count(usage, 'response_tokens')} "
                    f"totalTokens={_count(usage, 'total_tokens')}"
                )
                return GenerationResult(text=text, model_used=model_name, attempts=attempts, usage=usage)

            last_kind, last_error = ErrorKind.EMPTY_RESPONSE, f"Model {model_name} returned an empty response"
            self._emit(AttemptRecord(
                model=model_name,
                outcome=AttemptOutcome.EMPTY,
                error_kind=ErrorKind.EMPTY_RESPONSE,
                latency_ms=latency_ms,
                prompt_chars=prompt_chars,
                response_chars=len(text or ""),
                usage=usage,
            ), attempts)
            logger.warning(f"{YELLOW}Model {model_name} returned empty response, trying next...{RESET}")

        error = ExhaustedCascadeError(
            attempted_models,
            last_kind or ErrorKind.UNKNOWN,
            last_error=last_error,
            attempts=attempts,
        )
        logger.error(f"{RED}All models failed{RESET}: {error}")
        raise error

    def generate_structured(
        self,
        prompt: str,
        response_model: Type[BaseModel],
        preferred_model: Optional[str] = None,
        timeout_ms: Optional[float] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        """Generate with a Pydantic contract and return the validated instance."""
        result = self.generate_detailed(
            prompt,
            response_model=response_model,
            preferred_model=preferred_model,
            timeout_ms=timeout_ms,
            generation_config=generation_config,
        )
        try:
            json_data = repair_json_structure(extract_json(result.text), response_model)
            validated = response_model.model_validate(json_data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"{RED}{result.model_used} returned output that does not match "
                           f"{response_model.__name__}{RESET}: {str(e)[:200]}")
            raise ResponseValidationError(
                f"Response from {result.model_used} does not match {response_model.__name__}: {str(e)[:200]}",
                model=result.model_used,
                attempts=result.attempts,
            ) from e
        return LLMResponse(data=validated, model_used=result.model_used)


def _count(usage: Any, field: str) -> Any:
    value = getattr(usage, field, None) if usage is not None else None
    return "n/a" if value is None else value


def _fatal_error(kind: ErrorKind, cause: Exception, model_name: str, attempts: List[AttemptRecord]) -> GenerationError:
    if kind is ErrorKind.NETWORK:
        message = ("Gemini API network error: Unable to connect to Google servers. "
                   "Please check your internet connection and try again.")
    elif kind is ErrorKind.AUTHENTICATION:
        message = (f"Gemini API authentication error: Invalid or expired API key. "
                   f"Please check your {API_KEY_ENV}.")
    else:
        message = f"Gemini API error ({kind}): {cause}"
    return error_for_kind(kind, message, model=model_name, attempts=attempts)


_default_client: Optional[GenerationClient] = None


def get_default_client() -> GenerationClient:
    global _default_client
    if _default_client is None:
        _default_client = GenerationClient()
    return _default_client


def generate_with_fallback(
    prompt: str,
    response_model: Optional[Any] = None,
    preferred_model: Optional[str] = None,
    timeout_ms: Optional[float] = None,
    generation_config: Optional[Dict[str, Any]] = None,
) -> str:
    """Module-level entry point used by the rest of the app."""
    return get_default_client().generate(
        prompt,
        response_model=response_model,
        preferred_model=preferred_model,
        timeout_ms=timeout_ms,
        generation_config=generation_config,
    )
