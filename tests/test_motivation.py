"""Tests for the daily motivation generator and its single-slot memo."""

from datetime import date, timedelta
from unittest.mock import patch

from ai_resilience import LLMUnavailableError
from models import LogEntry, TaskType
from motivation import (
    FALLBACK_QUOTES,
    cache_key,
    get_cache,
    get_daily_motivation,
    summarize_logs,
)

TODAY = date(2026, 3, 11)


def _log(log_id, task_type=TaskType.QURAN, value=5, day=TODAY):
    return LogEntry(id=log_id, date=day, type=task_type, value=value)


class TestSummaries:
    def test_empty(self):
        assert summarize_logs([]) == "Nothing logged yet."

    def test_units(self):
        summary = summarize_logs([_log("a"), _log("b", TaskType.ZIKIR, 100)])
        assert summary == "Quran: 5 pages, Dhikr / Tasbih: 100 times"

    def test_cache_key_uses_newest_log(self):
        logs = [_log("b"), _log("a")]
        assert cache_key("Yusuf", logs) == ("Yusuf", 2, "b")
        assert cache_key("Yusuf", []) == ("Yusuf", 0, "no-logs")


class TestGetDailyMotivation:
    @patch("motivation.resilient_llm_call")
    def test_returns_generated_text(self, mock_call):
        mock_call.return_value = ("  Well done today!  ", {"latency_ms": 3})
        message = get_daily_motivation("Yusuf", [_log("a")], today=TODAY, api_key="k")
        assert message == "Well done today!"
        prompt = mock_call.call_args[0][0]
        assert "Yusuf" in prompt
        assert "Quran: 5 pages" in prompt

    @patch("motivation.resilient_llm_call")
    def test_only_todays_logs_are_summarised(self, mock_call):
        mock_call.return_value = ("ok", {})
        old = _log("old", TaskType.RISALE, 10, day=TODAY - timedelta(days=1))
        get_daily_motivation("Yusuf", [old], today=TODAY, api_key="k")
        prompt = mock_call.call_args[0][0]
        assert "Nothing logged yet." in prompt
        assert "Risale" not in prompt

    @patch("motivation.resilient_llm_call")
    def test_same_key_is_served_from_memo(self, mock_call):
        mock_call.return_value = ("First", {})
        logs = [_log("a")]
        first = get_daily_motivation("Yusuf", logs, today=TODAY, api_key="k")
        mock_call.return_value = ("Second", {})
        second = get_daily_motivation("Yusuf", logs, today=TODAY, api_key="k")
        assert first == second == "First"
        assert mock_call.call_count == 1

    @patch("motivation.resilient_llm_call")
    def test_new_log_invalidates_memo(self, mock_call):
        mock_call.return_value = ("First", {})
        get_daily_motivation("Yusuf", [_log("a")], today=TODAY, api_key="k")
        mock_call.return_value = ("Second", {})
        message = get_daily_motivation("Yusuf", [_log("b"), _log("a")], today=TODAY, api_key="k")
        assert message == "Second"
        assert mock_call.call_count == 2

    @patch("motivation.resilient_llm_call")
    def test_memo_holds_one_entry(self, mock_call):
        mock_call.return_value = ("Hi", {})
        get_daily_motivation("Yusuf", [], today=TODAY, api_key="k")
        get_daily_motivation("Omer", [], today=TODAY, api_key="k")
        get_daily_motivation("Yusuf", [], today=TODAY, api_key="k")
        assert mock_call.call_count == 3

    @patch("motivation.resilient_llm_call")
    def test_expired_memo_regenerates(self, mock_call, monkeypatch):
        monkeypatch.setattr(get_cache(), "ttl_seconds", 0)
        mock_call.return_value = ("Hi", {})
        get_daily_motivation("Yusuf", [], today=TODAY, api_key="k")
        get_daily_motivation("Yusuf", [], today=TODAY, api_key="k")
        assert mock_call.call_count == 2

    @patch("motivation.resilient_llm_call")
    def test_unavailable_falls_back(self, mock_call):
        mock_call.side_effect = LLMUnavailableError("GOOGLE_API_KEY is not set")
        message = get_daily_motivation("Yusuf", [], today=TODAY, api_key="")
        assert message in FALLBACK_QUOTES

    @patch("motivation.resilient_llm_call")
    def test_quota_error_falls_back_and_is_not_memoised(self, mock_call):
        mock_call.side_effect = RuntimeError("429 quota exceeded")
        message = get_daily_motivation("Yusuf", [], today=TODAY, api_key="k")
        assert message in FALLBACK_QUOTES
        assert get_cache().get(cache_key("Yusuf", [])) is None

    @patch("motivation.resilient_llm_call")
    def test_empty_response_uses_first_quote(self, mock_call):
        mock_call.return_value = ("   ", {})
        message = get_daily_motivation("Yusuf", [], today=TODAY, api_key="k")
        assert message == FALLBACK_QUOTES[0]
