"""AI Resilience Layer — Retry and Circuit Breaker around Gemini calls.

resilient_llm_call() is the single entry point for text generation. Transient
errors are retried with exponential backoff; repeated failures open a
per-provider circuit so a quota outage does not stall every request.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


# ── Circuit Breaker ─────────────────────────────────────────

@dataclass
class _ProviderState:
    failures: int = 0
    state: str = "closed"  # closed | open | half_open
    last_failure_time: float = 0.0


class CircuitBreaker:
    """Per-provider state machine: closed -> open -> half_open -> closed."""

    FAILURE_THRESHOLD = 3
    RECOVERY_TIMEOUT = 300  # seconds; quota windows are long

    def __init__(self) -> None:
        self._providers: dict[str, _ProviderState] = {}
        self._lock = threading.Lock()

    def _get_state(self, provider: str) -> _ProviderState:
        if provider not in self._providers:
            self._providers[provider] = _ProviderState()
        return self._providers[provider]

    def record_success(self, provider: str) -> None:
        with self._lock:
            state = self._get_state(provider)
            state.failures = 0
            state.state = "closed"

    def record_failure(self, provider: str) -> None:
        with self._lock:
            state = self._get_state(provider)
            state.failures += 1
            state.last_failure_time = time.time()
            if state.failures >= self.FAILURE_THRESHOLD:
                state.state = "open"

    def is_open(self, provider: str) -> bool:
        with self._lock:
            state = self._get_state(provider)
            if state.state == "closed":
                return False
            if state.state == "open":
                if time.time() - state.last_failure_time >= self.RECOVERY_TIMEOUT:
                    state.state = "half_open"
                    return False  # allow one attempt
                return True
            return False

    def get_state(self, provider: str) -> str:
        with self._lock:
            return self._get_state(provider).state

    def reset(self) -> None:
        with self._lock:
            self._providers.clear()


_circuit_breaker = CircuitBreaker()


# ── Transient error detection ───────────────────────────────

_TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
)

_TRANSIENT_PATTERNS = (
    "503",
    "502",
    "500",
    "overloaded",
    "temporarily unavailable",
    "timeout",
    "connection",
)


def _is_transient(exc: BaseException) -> bool:
    """Worth retrying? Quota (429) errors are not: retrying only burns more quota."""
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    msg = str(exc).lower()
    return any(p in msg for p in _TRANSIENT_PATTERNS)


def is_quota_error(exc: BaseException) -> bool:
    status = getattr(exc, "status", None) or getattr(exc, "code", None)
    if status == 429:
        return True
    msg = str(exc).lower()
    return "429" in msg or "quota" in msg or "resource exhausted" in msg


class TransientLLMError(Exception):
    """Wrapper for transient LLM errors that should be retried."""
    pass


class LLMUnavailableError(RuntimeError):
    """No usable provider: missing key or open circuit."""
    pass


# ── Main entry point ────────────────────────────────────────

def _do_call(provider: str, model: str, prompt: str, api_key: str) -> str:
    """Execute the actual LLM API call (no retry)."""
    if provider != "gemini":
        raise ValueError(f"Unknown provider: {provider}")
    import google.generativeai as genai
    genai.configure(api_key=api_key)
    response = genai.GenerativeModel(model).generate_content(prompt)
    return response.text or ""


@retry(
    retry=retry_if_exception_type(TransientLLMError),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    stop=stop_after_attempt(3),
    reraise=True,
)
def _call_with_retry(provider: str, model: str, prompt: str, api_key: str) -> str:
    try:
        return _do_call(provider, model, prompt, api_key)
    except Exception as exc:
        if _is_transient(exc):
            raise TransientLLMError(str(exc)) from exc
        raise


def resilient_llm_call(prompt: str, model: str = "gemini-2.0-flash",
                       provider: str = "gemini", api_key: str | None = None) -> tuple[str, dict]:
    """Generate text with retry and circuit breaking.

    Returns:
        (response_text, metadata) where metadata holds provider, model and latency_ms.

    Raises:
        LLMUnavailableError when no key is configured or the circuit is open;
        otherwise whatever the provider raised after retries.
    """
    api_key = api_key if api_key is not None else os.getenv("GOOGLE_API_KEY", "")
    if not api_key:
        raise LLMUnavailableError("GOOGLE_API_KEY is not set")
    if _circuit_breaker.is_open(provider):
        raise LLMUnavailableError(f"Circuit breaker open for provider: {provider}")

    start = time.time()
    try:
        text = _call_with_retry(provider, model, prompt, api_key)
    except Exception:
        _circuit_breaker.record_failure(provider)
        raise
    _circuit_breaker.record_success(provider)

    return text, {
        "provider": provider,
        "model": model,
        "latency_ms": int((time.time() - start) * 1000),
    }


def get_circuit_breaker() -> CircuitBreaker:
    """Access the module-level circuit breaker singleton."""
    return _circuit_breaker
