import json
import re
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional, Type, TypeVar

from pydantic import BaseModel

from ytsummary.llm.errors import AttemptTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)
R = TypeVar('R')


def call_with_timeout(fn: Callable[..., R], timeout_ms: Optional[float], *args: Any, **kwargs: Any) -> R:
    """
    Race ``fn(*args, **kwargs)`` against a timer.

    The call runs on its own worker thread. If the timer wins, the worker is
    abandoned rather than cancelled: it keeps running and whatever it returns
    or raises later is discarded.

    Raises:
        AttemptTimeoutError: if ``timeout_ms`` elapses first
    """
    if not timeout_ms:
        return fn(*args, **kwargs)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="llm-attempt")
    try:
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout_ms / 1000)
        except FutureTimeoutError:
            raise AttemptTimeoutError(f"Request timeout after {timeout_ms}ms") from None
    finally:
        executor.shutdown(wait=False)


def clean_json_string(json_str: str) -> str:
    """
    Clean common JSON formatting issues from LLM responses.

    Fixes:
    - Trailing commas before closing braces/brackets
    - Comments (though not valid JSON, some models add them)
    - Extra whitespace
    """
    # Remove comments (// and /* */ style), but leave URLs inside strings alone
    json_str = re.sub(r'(?<![:"])//[^\n"]*$', '', json_str, flags=re.MULTILINE)
    json_str = re.sub(r'/\*.*?\*/', '', json_str, flags=re.DOTALL)

    # Remove trailing commas (common LLM mistake)
    json_str = re.sub(r',(\s*[}\]])', r'\1', json_str)

    return json_str.strip()


def extract_json(response_text: str) -> Any:
    """
    Pull a JSON value out of model text.

    Tries, in order: the whole text, a fenced ```json block, the first {...}
    object. Each candidate is cleaned before parsing.

    Raises:
        json.JSONDecodeError: if nothing parseable is found
    """
    try:
        return json.loads(clean_json_string(response_text.strip()))
    except json.JSONDecodeError:
        pass

    fence_match = re.search(r'```(?:json)?\s*([\[{].*?[\]}])\s*```', response_text, re.DOTALL)
    if fence_match:
        return json.loads(clean_json_string(fence_match.group(1)))

    obj_match = re.search(r'\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}', response_text, re.DOTALL)
    if obj_match:
        return json.loads(clean_json_string(obj_match.group(0)))

    raise json.JSONDecodeError("No JSON found", response_text, 0)


def repair_json_structure(json_data: Any, response_model: Type[T]) -> Any:
    """
    Heuristically repair JSON structure to match response model.

    Common repairs:
    - If model expects object with single list field but got a list, wrap it.
    """
    if isinstance(json_data, list):
        fields = response_model.model_fields
        if len(fields) == 1:
            field_name = next(iter(fields))
            logger.debug(f"Repairing JSON: wrapping list in '{field_name}'")
            return {field_name: json_data}

    return json_data
