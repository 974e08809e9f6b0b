"""
Daily motivation — a short encouraging note generated from today's logs.

Gemini is unreliable (quota, outages), so get_daily_motivation() never raises:
any failure falls back to a canned quote. The last answer is memoised in a
single-slot cache keyed by (student name, today's log count, latest log id).
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ai_resilience import LLMUnavailableError, is_quota_error, resilient_llm_call
from models import COUNTED_TYPES, TASK_LABELS, LogEntry

logger = logging.getLogger(__name__)

FALLBACK_QUOTES = [
    "Every day is a new beginning. Your effort is appreciated!",
    "Drop by drop a lake is formed. Small steps lead to great results.",
    "Consistency is the key to success. Keep it up!",
    "What you study today will be the fruit of tomorrow.",
    "Spiritual growth is a marathon; walk it with patience.",
    "Whoever sees the good thinks good, and whoever thinks good enjoys life.",
    "Doing your duty is the greatest reward.",
    "When the intention is sincere, a small deed counts for much.",
]

PROMPT_TEMPLATE = """You are a wise, warm and motivating mentor for young people, speaking like an older sibling.
Student name: {name}.
Today's spiritual study: {summary}.

If they studied today, congratulate them and mention the spiritual value of what they did
(you may reference a short hadith or saying). If they have not, encourage them gently and
hopefully. Never be judgemental. Answer in at most 2-3 sentences."""


@dataclass
class _Memo:
    key: tuple
    message: str
    created_at: float


class MotivationCache:
    """Holds exactly one (key, message) pair with a time limit."""

    def __init__(self, ttl_seconds: int = 3600) -> None:
        self.ttl_seconds = ttl_seconds
        self._memo: Optional[_Memo] = None
        self._lock = threading.Lock()

    def get(self, key: tuple) -> Optional[str]:
        with self._lock:
            memo = self._memo
            if memo is None or memo.key != key:
                return None
            if time.time() - memo.created_at >= self.ttl_seconds:
                return None
            return memo.message

    def set(self, key: tuple, message: str) -> None:
        with self._lock:
            self._memo = _Memo(key=key, message=message, created_at=time.time())

    def clear(self) -> None:
        with self._lock:
            self._memo = None


_cache = MotivationCache()


def get_cache() -> MotivationCache:
    return _cache


def summarize_logs(logs: list[LogEntry]) -> str:
    if not logs:
        return "Nothing logged yet."
    parts = []
    for l in logs:
        unit = "times" if l.type in COUNTED_TYPES else "pages"
        parts.append(f"{TASK_LABELS[l.type]}: {l.value:g} {unit}")
    return ", ".join(parts)


def cache_key(student_name: str, todays_logs: list[LogEntry]) -> tuple:
    # Logs are stored newest first.
    last_id = todays_logs[0].id if todays_logs else "no-logs"
    return (student_name, len(todays_logs), last_id)


def fallback_message() -> str:
    return random.choice(FALLBACK_QUOTES)


def get_daily_motivation(student_name: str, logs: list[LogEntry], today: date | None = None,
                         model: str = "gemini-2.0-flash", api_key: str | None = None) -> str:
    """Return a motivational message for the student. Always returns a string."""
    today = today or date.today()
    todays_logs = [l for l in logs if l.date == today]
    key = cache_key(student_name, todays_logs)

    cached = _cache.get(key)
    if cached is not None:
        return cached

    prompt = PROMPT_TEMPLATE.format(name=student_name, summary=summarize_logs(todays_logs))
    try:
        text, meta = resilient_llm_call(prompt, model=model, api_key=api_key)
    except LLMUnavailableError as exc:
        logger.info("Motivation generator unavailable (%s); using fallback.", exc)
        return fallback_message()
    except Exception as exc:
        if is_quota_error(exc):
            logger.warning("Gemini quota exceeded; using fallback motivation.")
        else:
            logger.error("Gemini error while generating motivation: %s", exc)
        return fallback_message()

    message = text.strip() or FALLBACK_QUOTES[0]
    logger.debug("Motivation generated in %sms", meta.get("latency_ms"))
    _cache.set(key, message)
    return message
