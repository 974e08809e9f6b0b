"""
Gamification rule engine — ranks, XP/coin rewards, daily completion, streaks
and the midnight inactivity sweep.

Everything here is a pure function over models; callers own the state and
write the returned records back.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

from models import STREAK_FREEZE, CustomTask, LogEntry, Student, TaskType


# ── Rank Table ─────────────────────────────────────────────────────────

class Rank(NamedTuple):
    name: str
    min_xp: int


RANKS = [
    Rank("Barla Yolcusu", 0),
    Rank("Nur Şakirdi", 500),
    Rank("Müdakkik Okuyucu", 3000),
    Rank("Nur Naşiri", 10000),
    Rank("Erkan-ı Nur", 25000),
]


def get_rank(xp: int) -> Rank:
    for rank in reversed(RANKS):
        if xp >= rank.min_xp:
            return rank
    return RANKS[0]


def next_rank(xp: int) -> Optional[Rank]:
    for rank in RANKS:
        if rank.min_xp > xp:
            return rank
    return None


STREAK_TIERS = [
    (365, "legend"),
    (180, "emerald"),
    (90, "crimson"),
    (30, "amber"),
]


def streak_tier(streak: int) -> str:
    for threshold, tier in STREAK_TIERS:
        if streak >= threshold:
            return tier
    return "plain"


# ── XP / Currency Calculator ───────────────────────────────────────────

# Per page / per count. Decimal so that 300 * 0.1 floors to 30, not 29.
XP_RATES = {
    TaskType.QURAN: Decimal("20"),
    TaskType.RISALE: Decimal("15"),
    TaskType.PIRLANTA: Decimal("15"),
    TaskType.BOOK_READING: Decimal("10"),
    TaskType.ZIKIR: Decimal("0.1"),
    TaskType.NAMAZ: Decimal("50"),
}

MULTIPLIER = 2
COIN_RATIO = 1


class Reward(NamedTuple):
    xp: int
    coins: int


def is_multiplier_day(day: date, weekdays: Iterable[int] = (5, 6)) -> bool:
    """Weekends (Saturday=5, Sunday=6) by default."""
    return day.weekday() in set(weekdays)


def compute_reward(activity_type: TaskType | str, raw_value: float,
                   is_multiplier_day: bool) -> Reward:
    rate = XP_RATES[TaskType(activity_type)]
    base_xp = math.floor(Decimal(str(raw_value)) * rate)
    xp = base_xp * (MULTIPLIER if is_multiplier_day else 1)
    return Reward(xp=xp, coins=xp * COIN_RATIO)


# ── Streak / Completion Evaluator ──────────────────────────────────────

def is_daily_goal_met(logs: list[LogEntry], reference_date: date,
                      custom_tasks: list[CustomTask]) -> bool:
    """Any log that day, or, when tasks are assigned, every task title logged that day."""
    todays = [l for l in logs if l.date == reference_date]
    if not custom_tasks:
        return bool(todays)
    details = {l.details for l in todays if l.details}
    return all(task.title in details for task in custom_tasks)


def custom_task_progress(logs: list[LogEntry], reference_date: date,
                         custom_tasks: list[CustomTask]) -> list[tuple[CustomTask, bool]]:
    details = {l.details for l in logs if l.date == reference_date and l.details}
    return [(task, task.title in details) for task in custom_tasks]


@dataclass
class LogResult:
    student: Student
    reward: Reward
    goal_completed: bool    # the daily goal flipped to met with this entry


def apply_log_entry(student: Student, entry: LogEntry, is_multiplier_day: bool) -> LogResult:
    """Add one log to a student, awarding XP/coins and at most one streak day."""
    was_complete = is_daily_goal_met(student.logs, entry.date, student.custom_tasks)
    new_logs = [entry] + student.logs
    is_complete = is_daily_goal_met(new_logs, entry.date, student.custom_tasks)

    reward = compute_reward(entry.type, entry.value, is_multiplier_day)
    completed_now = not was_complete and is_complete

    updated = replace(
        student,
        logs=new_logs,
        streak=student.streak + 1 if completed_now else student.streak,
        total_xp=student.total_xp + reward.xp,
        coins=student.coins + reward.coins,
    )
    return LogResult(student=updated, reward=reward, goal_completed=completed_now)


def latest_log_date(logs: list[LogEntry]) -> Optional[date]:
    if not logs:
        return None
    return max(l.date for l in logs)


def consume_item(student: Student, item_type: str) -> Student:
    """Take one unit of an inventory item, pruning entries that reach zero."""
    inventory = []
    taken = False
    for item in student.inventory:
        if item.type == item_type and not taken and item.count > 0:
            item = replace(item, count=item.count - 1)
            taken = True
        if item.count > 0:
            inventory.append(item)
    return replace(student, inventory=inventory)


def apply_streak_decay(student: Student, reference_date: date) -> Student:
    """Reset or protect a streak once more than one day has passed since the last log.

    Only the most recent log is looked at: an earlier broken run is never
    penalised again once the student has logged recently.
    """
    last = latest_log_date(student.logs)
    if last is None:
        if student.streak == 0:
            return student
        return replace(student, streak=0)

    gap = abs((reference_date - last).days)
    if gap <= 1:
        return student

    if student.freeze_used_on == reference_date:
        # protection for this day was already paid
        return student

    if student.streak_freezes > 0:
        protected = consume_item(student, STREAK_FREEZE)
        return replace(protected, freeze_used_on=reference_date)

    if student.streak == 0:
        return student
    return replace(student, streak=0)


# ── Inactivity / Midnight Sweep ────────────────────────────────────────

def run_midnight_sweep(students: list[Student], reference_date: date) -> list[Student]:
    return [apply_streak_decay(s, reference_date) for s in students]
