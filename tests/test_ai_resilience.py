"""Tests for the AI resilience layer — circuit breaker, error classification and resilient_llm_call."""

import time
from unittest.mock import patch

import pytest

from ai_resilience import (
    CircuitBreaker,
    LLMUnavailableError,
    _is_transient,
    get_circuit_breaker,
    is_quota_error,
    resilient_llm_call,
)


# ── CircuitBreaker Tests ────────────────────────────────────


class TestCircuitBreaker:
    def test_starts_closed(self):
        cb = CircuitBreaker()
        assert not cb.is_open("gemini")
        assert cb.get_state("gemini") == "closed"

    def test_opens_after_threshold_failures(self):
        cb = CircuitBreaker()
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        assert cb.is_open("gemini")
        assert cb.get_state("gemini") == "open"

    def test_success_resets(self):
        cb = CircuitBreaker()
        cb.record_failure("gemini")
        cb.record_failure("gemini")
        cb.record_success("gemini")
        assert not cb.is_open("gemini")
        assert cb.get_state("gemini") == "closed"

    def test_recovery_timeout_half_opens(self):
        cb = CircuitBreaker()
        cb.RECOVERY_TIMEOUT = 0.01
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        assert cb.is_open("gemini")
        time.sleep(0.02)
        assert not cb.is_open("gemini")
        assert cb.get_state("gemini") == "half_open"

    def test_reset_forgets_providers(self):
        cb = CircuitBreaker()
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        cb.reset()
        assert cb.get_state("gemini") == "closed"


# ── Error classification ────────────────────────────────────


class TestErrorClassification:
    def test_transient(self):
        assert _is_transient(ConnectionError("reset by peer"))
        assert _is_transient(TimeoutError())
        assert _is_transient(RuntimeError("503 Service Unavailable"))
        assert _is_transient(RuntimeError("model is overloaded"))

    def test_not_transient(self):
        assert not _is_transient(ValueError("bad prompt"))
        assert not _is_transient(RuntimeError("429 quota exceeded"))

    def test_quota(self):
        assert is_quota_error(RuntimeError("429 Too Many Requests"))
        assert is_quota_error(RuntimeError("Resource exhausted"))
        assert not is_quota_error(RuntimeError("500 internal"))

    def test_quota_from_status_attribute(self):
        exc = RuntimeError("rate limited")
        exc.code = 429
        assert is_quota_error(exc)


# ── resilient_llm_call ──────────────────────────────────────


class TestResilientCall:
    def test_missing_key_is_unavailable(self):
        with pytest.raises(LLMUnavailableError):
            resilient_llm_call("hello", api_key="")

    @patch("ai_resilience._call_with_retry")
    def test_basic_call(self, mock_retry):
        mock_retry.return_value = "Keep going!"
        text, meta = resilient_llm_call("hello", api_key="k")
        assert text == "Keep going!"
        assert meta["provider"] == "gemini"
        assert meta["model"] == "gemini-2.0-flash"
        assert "latency_ms" in meta
        mock_retry.assert_called_once_with("gemini", "gemini-2.0-flash", "hello", "k")

    @patch("ai_resilience._call_with_retry")
    def test_failure_records_to_circuit_breaker(self, mock_retry):
        mock_retry.side_effect = RuntimeError("boom")
        for _ in range(CircuitBreaker.FAILURE_THRESHOLD):
            with pytest.raises(RuntimeError):
                resilient_llm_call("hello", api_key="k")
        assert get_circuit_breaker().get_state("gemini") == "open"

    @patch("ai_resilience._call_with_retry")
    def test_open_circuit_blocks_call(self, mock_retry):
        cb = get_circuit_breaker()
        for _ in range(cb.FAILURE_THRESHOLD):
            cb.record_failure("gemini")
        with pytest.raises(LLMUnavailableError):
            resilient_llm_call("hello", api_key="k")
        mock_retry.assert_not_called()

    @patch("ai_resilience._call_with_retry")
    def test_success_closes_circuit(self, mock_retry):
        mock_retry.return_value = "ok"
        get_circuit_breaker().record_failure("gemini")
        resilient_llm_call("hello", api_key="k")
        assert get_circuit_breaker().get_state("gemini") == "closed"
