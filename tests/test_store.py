"""Tests for AppStore — registration, logging, sweeps and mentor tooling on the seeded demo group."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from models import STREAK_FREEZE, InventoryItem, LogEntry, Student, TaskType
from seed_demo_data import seed
from store import AppStore

TODAY = date(2026, 3, 11)
NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def demo_store():
    s = AppStore()
    seed(s, today=TODAY, now=NOW)
    return s


class TestSeed:
    def test_demo_records(self, demo_store):
        yusuf = demo_store.get_student("s1")
        omer = demo_store.get_student("s2")
        assert (yusuf.streak, yusuf.total_xp, yusuf.coins, yusuf.streak_freezes) == (12, 4520, 450, 1)
        assert (omer.streak, omer.total_xp, omer.coins) == (45, 16400, 2400)
        assert all(l.date == TODAY - timedelta(days=1) for l in yusuf.logs)
        assert demo_store.get_group("g1").join_code == "YILDIZ2025"
        assert demo_store.get_mentor("m1").group_ids == ["g1"]


class TestLookups:
    def test_find_by_username(self, demo_store):
        assert demo_store.find_student_by_username("yusufefe").id == "s1"
        assert demo_store.find_student_by_username("ömer").id == "s2"
        assert demo_store.find_student_by_username("nobody") is None
        assert demo_store.find_student_by_username("  ") is None
        assert demo_store.find_mentor_by_username("ahmethoca").id == "m1"


class TestRegistration:
    def test_student_joins_by_code(self, demo_store):
        result = demo_store.register_student("Ali Veli", "aliveli", "YILDIZ2025")
        assert result["success"]
        student = result["student"]
        assert student.group_id == "g1"
        assert (student.streak, student.total_xp, student.coins) == (0, 0, 0)
        assert student.id.startswith("s-")
        assert len(demo_store.students_in_group("g1")) == 3

    def test_bad_join_code(self, demo_store):
        result = demo_store.register_student("Ali", "ali", "NOPE")
        assert not result["success"]

    def test_duplicate_username(self, demo_store):
        result = demo_store.register_student("Another", "yusufefe", "YILDIZ2025")
        assert result == {"success": False, "error": "Username already taken."}

    def test_mentor_needs_registration_code(self, demo_store):
        assert not demo_store.register_mentor("Hoca", "hoca", "WRONG", "ATLAS2025")["success"]
        result = demo_store.register_mentor("Hoca", "hoca", "ATLAS2025", "ATLAS2025")
        assert result["success"]
        assert result["mentor"].group_ids == [result["group"].id]
        assert result["group"].mentor_id == result["mentor"].id

    def test_ids_are_unique(self, demo_store):
        a = demo_store.register_student("A", "a", "YILDIZ2025")["student"]
        b = demo_store.register_student("B", "b", "YILDIZ2025")["student"]
        assert a.id != b.id


class TestLogActivity:
    def test_first_log_today_extends_streak(self, demo_store):
        # Yusuf has a custom task, so a plain log does not complete the day
        result = demo_store.log_activity("s1", TaskType.QURAN, 5, day=TODAY, multiplier_weekdays=())
        assert result["reward"] == (100, 100)
        assert result["student"].streak == 12
        result = demo_store.log_activity(
            "s1", TaskType.NAMAZ, 2, details="Teheccüd Namazı", day=TODAY, multiplier_weekdays=(),
        )
        assert result["goal_completed"]
        assert demo_store.get_student("s1").streak == 13
        assert demo_store.get_student("s1").total_xp == 4520 + 100 + 100

    def test_multiplier_weekday(self, demo_store):
        result = demo_store.log_activity("s2", TaskType.ZIKIR, 300, day=TODAY,
                                         multiplier_weekdays=(TODAY.weekday(),))
        assert result["multiplier_day"]
        assert result["reward"] == (60, 60)
        # Omer has no earlier logs, so the stored streak is reset before today counts
        assert result["student"].streak == 1

    def test_non_positive_value_rejected(self, demo_store):
        result = demo_store.log_activity("s1", TaskType.QURAN, 0, day=TODAY)
        assert result == {"success": False, "error": "Logged value must be a positive number."}
        assert len(demo_store.get_student("s1").logs) == 2

    def test_non_finite_value_rejected(self, demo_store):
        for value in (float("nan"), float("inf"), float("-inf")):
            assert not demo_store.log_activity("s1", TaskType.QURAN, value, day=TODAY)["success"]
        assert demo_store.get_student("s1").total_xp == 4520

    def test_stale_streak_restarts_on_next_log(self, demo_store):
        demo_store.add_student(Student(
            id="s9", name="Idle Student", username="idle", avatar_url="", group_id="g1",
            streak=10, logs=[LogEntry(id="old", date=TODAY - timedelta(days=5),
                                      type=TaskType.QURAN, value=1)],
        ))
        result = demo_store.log_activity("s9", TaskType.QURAN, 1, day=TODAY, multiplier_weekdays=())
        assert result["goal_completed"]
        assert result["student"].streak == 1
        assert demo_store.decay_student("s9", TODAY).streak == 1

    def test_stale_streak_kept_by_freeze_on_next_log(self, demo_store):
        demo_store.add_student(Student(
            id="s9", name="Idle Student", username="idle", avatar_url="", group_id="g1",
            streak=10, inventory=[InventoryItem(id="inv9", type=STREAK_FREEZE, count=1)],
            logs=[LogEntry(id="old", date=TODAY - timedelta(days=2),
                           type=TaskType.QURAN, value=1)],
        ))
        result = demo_store.log_activity("s9", TaskType.QURAN, 1, day=TODAY, multiplier_weekdays=())
        assert result["student"].streak == 11
        assert result["student"].streak_freezes == 0

    def test_unknown_student(self, demo_store):
        assert not demo_store.log_activity("ghost", TaskType.QURAN, 1, day=TODAY)["success"]

    def test_new_logs_are_unverified(self, demo_store):
        result = demo_store.log_activity("s1", TaskType.RISALE, 3, day=TODAY)
        assert result["log"].is_verified is False
        assert demo_store.get_student("s1").logs[0].id == result["log"].id


class TestSweep:
    def test_sweep_on_seed_day(self, demo_store):
        changed = demo_store.sweep(TODAY)
        assert changed == 1  # Omer has no logs
        assert demo_store.get_student("s1").streak == 12
        assert demo_store.get_student("s2").streak == 0
        assert demo_store.last_sweep == TODAY

    def test_sweep_two_days_later_spends_freeze(self, demo_store):
        later = TODAY + timedelta(days=2)
        demo_store.sweep(later)
        yusuf = demo_store.get_student("s1")
        assert yusuf.streak == 12
        assert yusuf.streak_freezes == 0
        assert demo_store.sweep(later) == 0

    def test_decay_student(self, demo_store):
        assert demo_store.decay_student("s2", TODAY).streak == 0
        assert demo_store.decay_student("ghost", TODAY) is None


class TestShopAndRewards:
    def test_buy_freeze(self, demo_store):
        result = demo_store.buy_item("s2", "streak_freeze")
        assert result["success"]
        assert demo_store.get_student("s2").coins == 1400

    def test_buy_without_coins(self, demo_store):
        result = demo_store.buy_item("s1", "streak_freeze")
        assert result == {"success": False, "error": "Not enough coins."}
        assert demo_store.get_student("s1").coins == 450

    def test_toggle_reward(self, demo_store):
        result = demo_store.toggle_reward("s2", "RAINBOW_NAME")
        assert result["success"]
        assert demo_store.get_student("s2").active_rewards[0].is_active is False
        assert not demo_store.toggle_reward("s1", "RAINBOW_NAME")["success"]

    def test_grant_reward(self, demo_store):
        result = demo_store.grant_reward("s1", "GOLD_GLOW", 2, NOW)
        assert result["success"]
        [reward] = demo_store.get_student("s1").active_rewards
        assert reward.expires_at == NOW + timedelta(days=2)
        assert not demo_store.grant_reward("s1", "GOLD_GLOW", 0, NOW)["success"]
        assert not demo_store.grant_reward("s1", "SPARKLES", 1, NOW)["success"]


class TestMentorTooling:
    def test_toggle_verification(self, demo_store):
        demo_store.toggle_verification("s1", "l1")
        assert not demo_store.get_student("s1").logs[0].is_verified
        assert not demo_store.toggle_verification("s1", "missing")["success"]

    def test_approve_all(self, demo_store):
        demo_store.log_activity("s1", TaskType.QURAN, 1, day=TODAY)
        demo_store.approve_all("s1")
        assert all(l.is_verified for l in demo_store.get_student("s1").logs)

    def test_group_task_assignment_skips_existing_titles(self, demo_store):
        assert demo_store.add_group_task("g1", "Teheccüd Namazı") == 1
        assert demo_store.add_group_task("g1", "Evvabin") == 2
        stats = demo_store.group_task_stats("g1")
        assert stats["Teheccüd Namazı"]["count"] == 2
        assert stats["Evvabin"]["description"] == "Group Task"
        assert demo_store.remove_group_task("g1", "Evvabin") == 2
        assert "Evvabin" not in demo_store.group_task_stats("g1")

    def test_custom_task_add_remove(self, demo_store):
        result = demo_store.add_custom_task("s2", "Cevşen", "1 bab", TaskType.ZIKIR)
        task = result["task"]
        assert demo_store.get_student("s2").custom_tasks == [task]
        demo_store.remove_custom_task("s2", task.id)
        assert demo_store.get_student("s2").custom_tasks == []

    def test_group_overview(self, demo_store):
        demo_store.log_activity("s1", TaskType.QURAN, 1, day=TODAY)
        overview = demo_store.group_overview("g1", TODAY)
        assert overview["student_count"] == 2
        assert overview["total_logs"] == 3
        assert overview["avg_streak"] == round((12 + 45) / 2)
        assert overview["active_today"] == 1
        assert overview["pending_verification"] == [{"id": "s1", "name": "Yusuf Efe", "pending_count": 1}]

    def test_regenerate_join_code(self, demo_store):
        code = demo_store.regenerate_join_code("g1", 2026)
        assert code.startswith("ATLAS") and code.endswith("2026")
        assert len(code) == len("ATLAS") + 4 + 4
        assert demo_store.find_group_by_code(code).id == "g1"

    @patch("store.secrets.choice", return_value="Q")
    def test_join_code_drawn_from_secrets(self, mock_choice, demo_store):
        assert demo_store.regenerate_join_code("g1", 2026) == "ATLASQQQQ2026"
        assert mock_choice.call_count == 4

    @patch("store.secrets.randbelow", return_value=42)
    def test_mentor_group_code_drawn_from_secrets(self, mock_randbelow, demo_store):
        result = demo_store.register_mentor("Hoca", "hoca", "ATLAS2025", "ATLAS2025")
        assert result["group"].join_code == "GRP0042"
        mock_randbelow.assert_called_once_with(10000)

    def test_leaderboard_sorted_by_xp(self, demo_store):
        assert [s.id for s in demo_store.leaderboard("g1")] == ["s2", "s1"]


class TestProfile:
    def test_update_profile(self, demo_store):
        result = demo_store.update_profile("student", "s1", name="Yusuf E.", avatar="https://x/y.svg")
        assert result["user"].name == "Yusuf E."
        assert result["user"].username == "yusufefe"

    def test_username_conflict(self, demo_store):
        result = demo_store.update_profile("student", "s1", username="omerfaruk")
        assert not result["success"]

    def test_audit_trail_is_bounded(self):
        s = AppStore(audit_size=2)
        for i in range(5):
            s.record_event(f"e{i}")
        assert [e["action"] for e in s.audit_trail] == ["e3", "e4"]
