import os
import logging
from typing import Any, Dict, Optional

import requests

from ytsummary.common import env_float
from ytsummary.llm.errors import ProviderHTTPError
from ytsummary.llm.providers.base import BaseLLMProvider
from ytsummary.llm.types import ProviderResponse, TokenUsage

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"

# Transport-level timeout (seconds); the per-attempt race timeout is separate
REQUEST_TIMEOUT = env_float("GEMINI_REQUEST_TIMEOUT", 120.0)


class GeminiProvider(BaseLLMProvider):
    def __init__(self, api_version: Optional[str] = None, session: Optional[requests.Session] = None):
        self.api_version = api_version or os.getenv("GEMINI_API_VERSION", "v1beta")
        self.session = session

    @property
    def provider_name(self) -> str:
        return "gemini"

    def _url(self, model_name: str) -> str:
        return f"{GEMINI_BASE_URL}/{self.api_version}/models/{model_name}:generateContent"

    def generate(
        self,
        prompt: str,
        model_name: str,
        generation_config: Optional[Dict[str, Any]] = None,
        api_key: Optional[str] = None
    ) -> ProviderResponse:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": api_key or "",
        }
        payload: Dict[str, Any] = {
            "contents": [{
                "parts": [{
                    "text": prompt
                }]
            }]
        }
        if generation_config:
            payload["generationConfig"] = generation_config

        logger.debug(f"Gemini request for {model_name} using API {self.api_version}")
        post = self.session.post if self.session is not None else requests.post
        response = post(
            self._url(model_name),
            headers=headers,
            json=payload,
            timeout=REQUEST_TIMEOUT
        )

        if response.status_code >= 400:
            message = _error_message(response)
            logger.debug(f"Gemini API error (HTTP {response.status_code}) for {model_name}: {message}")
            raise ProviderHTTPError(response.status_code, message)

        data = response.json()
        return ProviderResponse(text=_candidate_text(data), usage=_usage(data))


def _error_message(response: requests.Response) -> str:
    try:
        error = response.json().get("error", {})
    except ValueError:
        return response.text
    if isinstance(error, dict) and error.get("message"):
        status = error.get("status")
        return f"{error['message']} ({status})" if status else error["message"]
    return response.text


def _candidate_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            logger.warning(f"Gemini returned no candidates (blockReason={block_reason})")
        return ""

    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def _usage(data: Dict[str, Any]) -> Optional[TokenUsage]:
    usage = data.get("usageMetadata")
    if not usage:
        return None
    response_tokens = usage.get("candidatesTokenCount")
    if response_tokens is None:
        response_tokens = usage.get("outputTokenCount")
    return TokenUsage(
        prompt_tokens=usage.get("promptTokenCount"),
        response_tokens=response_tokens,
        total_tokens=usage.get("totalTokenCount"),
    )
