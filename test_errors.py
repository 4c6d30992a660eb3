"""
Tests for failure classification and the typed error taxonomy.
"""

import unittest
from unittest.mock import MagicMock

import requests

from ytsummary.llm.errors import (
    AttemptTimeoutError,
    AuthenticationError,
    ErrorKind,
    ExhaustedCascadeError,
    OverloadedError,
    ProviderHTTPError,
    RateLimitedError,
    UnknownProviderError,
    classify_error,
    error_for_kind,
)


class StatusError(Exception):
    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


class TestClassifyError(unittest.TestCase):
    def test_status_codes(self):
        cases = {
            503: ErrorKind.OVERLOADED,
            429: ErrorKind.RATE_LIMITED,
            401: ErrorKind.AUTHENTICATION,
            403: ErrorKind.AUTHENTICATION,
            400: ErrorKind.INVALID_REQUEST,
            500: ErrorKind.UNKNOWN,
        }
        for status, kind in cases.items():
            with self.subTest(status=status):
                self.assertEqual(classify_error(StatusError("upstream said no", status)), kind)

    def test_message_substrings(self):
        cases = {
            "Model is overloaded": ErrorKind.OVERLOADED,
            "got 503 from upstream": ErrorKind.OVERLOADED,
            "Rate limit exceeded": ErrorKind.RATE_LIMITED,
            "status 429": ErrorKind.RATE_LIMITED,
            "Unauthorized": ErrorKind.AUTHENTICATION,
            "API key not valid": ErrorKind.AUTHENTICATION,
            "fetch failed": ErrorKind.NETWORK,
            "getaddrinfo ENOTFOUND generativelanguage.googleapis.com": ErrorKind.NETWORK,
            "read ECONNRESET": ErrorKind.NETWORK,
            "bad things": ErrorKind.UNKNOWN,
        }
        for message, kind in cases.items():
            with self.subTest(message=message):
                self.assertEqual(classify_error(Exception(message)), kind)

    def test_requests_exceptions(self):
        self.assertEqual(classify_error(requests.exceptions.ConnectionError("boom")), ErrorKind.NETWORK)
        self.assertEqual(classify_error(requests.exceptions.ReadTimeout("slow")), ErrorKind.TIMEOUT)
        self.assertEqual(classify_error(ConnectionResetError("reset")), ErrorKind.NETWORK)

    def test_http_error_with_response(self):
        response = MagicMock()
        response.status_code = 503
        error = requests.exceptions.HTTPError("Server Error", response=response)
        self.assertEqual(classify_error(error), ErrorKind.OVERLOADED)

    def test_provider_http_error(self):
        self.assertEqual(
            classify_error(ProviderHTTPError(429, "Resource has been exhausted (e.g. check quota).")),
            ErrorKind.RATE_LIMITED,
        )

    def test_classified_errors_keep_their_kind(self):
        self.assertEqual(classify_error(AttemptTimeoutError("Request timeout")), ErrorKind.TIMEOUT)
        self.assertEqual(classify_error(OverloadedError("busy")), ErrorKind.OVERLOADED)


class TestErrorKinds(unittest.TestCase):
    def test_only_transient_kinds_are_retryable(self):
        retryable = {kind for kind in ErrorKind if kind.retryable}
        self.assertEqual(retryable, {ErrorKind.OVERLOADED, ErrorKind.RATE_LIMITED, ErrorKind.TIMEOUT})

    def test_error_for_kind_builds_typed_errors(self):
        self.assertIsInstance(error_for_kind(ErrorKind.RATE_LIMITED, "x"), RateLimitedError)
        self.assertIsInstance(error_for_kind(ErrorKind.AUTHENTICATION, "x"), AuthenticationError)
        self.assertIsInstance(error_for_kind(ErrorKind.EMPTY_RESPONSE, "x"), UnknownProviderError)
        error = error_for_kind(ErrorKind.OVERLOADED, "busy", model="gemini-2.5-pro")
        self.assertEqual(error.model, "gemini-2.5-pro")
        self.assertEqual(error.kind, ErrorKind.OVERLOADED)

    def test_exhausted_error_exposes_structured_payload(self):
        error = ExhaustedCascadeError(["a", "b"], ErrorKind.RATE_LIMITED, last_error="HTTP 429: slow down")

        self.assertEqual(error.attempted_models, ("a", "b"))
        self.assertEqual(error.last_kind, ErrorKind.RATE_LIMITED)
        self.assertEqual(error.model, "b")
        self.assertEqual(error.kind, ErrorKind.EXHAUSTED)
        self.assertIn("a, b", str(error))
        self.assertIn("rate limited", str(error))


if __name__ == "__main__":
    unittest.main()
