"""
In-memory state owner for Atlas Companion.

AppStore holds the student, mentor and group collections and serialises every
read-modify-write behind one re-entrant lock. Blueprints call these methods;
the rule engine in gamification.py / rewards.py / shop.py does the actual
computing on plain records.
"""

from __future__ import annotations

import logging
import math
import secrets
import string
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

import gamification
import rewards as reward_rules
import shop
from helpers import avatar_url, new_id
from models import CustomTask, Group, LogEntry, Mentor, Student, TaskType

logger = logging.getLogger(__name__)


class AppStore:
    """Single owner of all platform state."""

    def __init__(self, audit_size: int = 500) -> None:
        self._lock = threading.RLock()
        self._students: dict[str, Student] = {}
        self._mentors: dict[str, Mentor] = {}
        self._groups: dict[str, Group] = {}
        self.audit_trail: deque[dict] = deque(maxlen=audit_size)
        self.last_sweep: Optional[date] = None

    # ── Reads ──────────────────────────────────────────────────────────

    def get_student(self, student_id: str) -> Optional[Student]:
        with self._lock:
            return self._students.get(student_id)

    def get_mentor(self, mentor_id: str) -> Optional[Mentor]:
        with self._lock:
            return self._mentors.get(mentor_id)

    def get_group(self, group_id: str) -> Optional[Group]:
        with self._lock:
            return self._groups.get(group_id)

    def all_students(self) -> list[Student]:
        with self._lock:
            return list(self._students.values())

    def all_groups(self) -> list[Group]:
        with self._lock:
            return list(self._groups.values())

    def students_in_group(self, group_id: str) -> list[Student]:
        with self._lock:
            return [s for s in self._students.values() if s.group_id == group_id]

    def find_student_by_username(self, username: str) -> Optional[Student]:
        """Exact username first, then a case-insensitive name match."""
        needle = username.strip().lower()
        if not needle:
            return None
        with self._lock:
            for s in self._students.values():
                if s.username == username.strip():
                    return s
            for s in self._students.values():
                if needle in s.name.lower():
                    return s
        return None

    def find_mentor_by_username(self, username: str) -> Optional[Mentor]:
        with self._lock:
            for m in self._mentors.values():
                if m.username == username.strip():
                    return m
        return None

    def find_group_by_code(self, join_code: str) -> Optional[Group]:
        with self._lock:
            for g in self._groups.values():
                if g.join_code == join_code:
                    return g
        return None

    def mentor_group(self, mentor: Mentor) -> Optional[Group]:
        gid = mentor.primary_group_id
        return self.get_group(gid) if gid else None

    def username_taken(self, username: str) -> bool:
        with self._lock:
            return any(s.username == username for s in self._students.values()) or any(
                m.username == username for m in self._mentors.values()
            )

    # ── Raw inserts (seeding, registration) ────────────────────────────

    def add_student(self, student: Student) -> None:
        with self._lock:
            self._students[student.id] = student

    def add_mentor(self, mentor: Mentor) -> None:
        with self._lock:
            self._mentors[mentor.id] = mentor

    def add_group(self, group: Group) -> None:
        with self._lock:
            self._groups[group.id] = group

    def clear(self) -> None:
        with self._lock:
            self._students.clear()
            self._mentors.clear()
            self._groups.clear()
            self.audit_trail.clear()
            self.last_sweep = None

    # ── Transactions ───────────────────────────────────────────────────

    def update_student(self, student_id: str,
                       fn: Callable[[Student], Student]) -> Optional[Student]:
        """Apply fn to the stored student and write the result back atomically."""
        with self._lock:
            student = self._students.get(student_id)
            if student is None:
                return None
            updated = fn(student)
            self._students[student_id] = updated
            return updated

    def update_students(self, group_id: str,
                        fn: Callable[[Student], Student]) -> list[Student]:
        with self._lock:
            changed = []
            for sid, student in list(self._students.items()):
                if student.group_id != group_id:
                    continue
                updated = fn(student)
                self._students[sid] = updated
                changed.append(updated)
            return changed

    def record_event(self, action: str, actor: str | None = None, detail: str = "") -> None:
        with self._lock:
            self.audit_trail.append({
                "action": action,
                "actor": actor,
                "detail": detail,
                "created_at": datetime.now().isoformat(),
            })

    # ── Activity logging & streaks ─────────────────────────────────────

    def log_activity(self, student_id: str, task_type: TaskType, value: float,
                     details: str | None = None, day: date | None = None,
                     multiplier_weekdays: tuple[int, ...] = (5, 6)) -> dict:
        if not math.isfinite(value) or value <= 0:
            return {"success": False, "error": "Logged value must be a positive number."}
        day = day or date.today()
        entry = LogEntry(
            id=new_id("l"),
            date=day,
            type=TaskType(task_type),
            value=value,
            details=details or None,
            is_verified=False,
        )
        multiplier = gamification.is_multiplier_day(day, multiplier_weekdays)

        with self._lock:
            student = self._students.get(student_id)
            if student is None:
                return {"success": False, "error": "Student not found."}
            # idle gaps are settled before the day's increment
            student = gamification.apply_streak_decay(student, day)
            result = gamification.apply_log_entry(student, entry, multiplier)
            self._students[student_id] = result.student

        logger.info(
            "Logged %s x%s for %s (+%d xp, streak %d%s)",
            entry.type.value, value, student_id, result.reward.xp,
            result.student.streak, ", goal complete" if result.goal_completed else "",
        )
        return {
            "success": True,
            "log": entry,
            "student": result.student,
            "reward": result.reward,
            "goal_completed": result.goal_completed,
            "multiplier_day": multiplier,
        }

    def decay_student(self, student_id: str, reference_date: date | None = None) -> Optional[Student]:
        """Lazily apply the inactivity rule to one student before a streak read."""
        reference_date = reference_date or date.today()
        return self.update_student(
            student_id, lambda s: gamification.apply_streak_decay(s, reference_date),
        )

    def sweep(self, reference_date: date | None = None) -> int:
        """Run the midnight sweep over every student. Returns how many changed."""
        reference_date = reference_date or date.today()
        with self._lock:
            before = list(self._students.values())
            after = gamification.run_midnight_sweep(before, reference_date)
            changed = 0
            for old, new in zip(before, after):
                if new is not old:
                    changed += 1
                self._students[new.id] = new
            self.last_sweep = reference_date
        logger.info("Midnight sweep for %s: %d of %d students updated",
                    reference_date.isoformat(), changed, len(before))
        return changed

    # ── Shop & rewards ─────────────────────────────────────────────────

    def buy_item(self, student_id: str, item_id: str) -> dict:
        with self._lock:
            student = self._students.get(student_id)
            if student is None:
                return {"success": False, "error": "Student not found."}
            updated, error = shop.purchase(student, item_id)
            if error:
                return {"success": False, "error": error}
            self._students[student_id] = updated
        logger.info("Student %s bought %s", student_id, item_id)
        return {"success": True, "student": updated}

    def toggle_reward(self, student_id: str, reward_id: str) -> dict:
        with self._lock:
            student = self._students.get(student_id)
            if student is None:
                return {"success": False, "error": "Student not found."}
            if not any(r.id == reward_id for r in student.active_rewards):
                return {"success": False, "error": "Reward not found."}
            updated = replace(
                student,
                active_rewards=reward_rules.toggle_reward(student.active_rewards, reward_id),
            )
            self._students[student_id] = updated
        return {"success": True, "student": updated}

    def grant_reward(self, student_id: str, reward_id: str, days: int,
                     now: datetime) -> dict:
        if reward_id not in reward_rules.REWARD_DEFINITIONS:
            return {"success": False, "error": "Unknown reward."}
        if days <= 0:
            return {"success": False, "error": "Duration must be at least one day."}
        updated = self.update_student(
            student_id,
            lambda s: replace(s, active_rewards=reward_rules.grant_reward(
                s.active_rewards, reward_id, timedelta(days=days), now,
            )),
        )
        if updated is None:
            return {"success": False, "error": "Student not found."}
        return {"success": True, "student": updated}

    # ── Mentor tooling ─────────────────────────────────────────────────

    def toggle_verification(self, student_id: str, log_id: str) -> dict:
        with self._lock:
            student = self._students.get(student_id)
            if student is None:
                return {"success": False, "error": "Student not found."}
            if not any(l.id == log_id for l in student.logs):
                return {"success": False, "error": "Log not found."}
            logs = [
                replace(l, is_verified=not l.is_verified) if l.id == log_id else l
                for l in student.logs
            ]
            updated = replace(student, logs=logs)
            self._students[student_id] = updated
        return {"success": True, "student": updated}

    def approve_all(self, student_id: str) -> dict:
        updated = self.update_student(
            student_id,
            lambda s: replace(s, logs=[replace(l, is_verified=True) for l in s.logs]),
        )
        if updated is None:
            return {"success": False, "error": "Student not found."}
        return {"success": True, "student": updated}

    def add_custom_task(self, student_id: str, title: str, description: str = "",
                        task_type: TaskType = TaskType.NAMAZ) -> dict:
        task = CustomTask(
            id=new_id("ct"),
            title=title,
            target_description=description or "General",
            type=TaskType(task_type),
        )
        updated = self.update_student(
            student_id, lambda s: replace(s, custom_tasks=s.custom_tasks + [task]),
        )
        if updated is None:
            return {"success": False, "error": "Student not found."}
        return {"success": True, "task": task, "student": updated}

    def remove_custom_task(self, student_id: str, task_id: str) -> dict:
        updated = self.update_student(
            student_id,
            lambda s: replace(s, custom_tasks=[t for t in s.custom_tasks if t.id != task_id]),
        )
        if updated is None:
            return {"success": False, "error": "Student not found."}
        return {"success": True, "student": updated}

    def add_group_task(self, group_id: str, title: str, description: str = "",
                       task_type: TaskType = TaskType.NAMAZ) -> int:
        """Assign a task to every student in a group who lacks that title. Returns count assigned."""
        assigned = 0

        def _assign(s: Student) -> Student:
            nonlocal assigned
            if any(t.title == title for t in s.custom_tasks):
                return s
            assigned += 1
            task = CustomTask(
                id=new_id("ct"),
                title=title,
                target_description=description or "Group Task",
                type=TaskType(task_type),
            )
            return replace(s, custom_tasks=s.custom_tasks + [task])

        self.update_students(group_id, _assign)
        return assigned

    def remove_group_task(self, group_id: str, title: str) -> int:
        removed = 0

        def _remove(s: Student) -> Student:
            nonlocal removed
            kept = [t for t in s.custom_tasks if t.title != title]
            if len(kept) == len(s.custom_tasks):
                return s
            removed += 1
            return replace(s, custom_tasks=kept)

        self.update_students(group_id, _remove)
        return removed

    def group_task_stats(self, group_id: str) -> dict:
        stats: dict[str, dict] = {}
        for s in self.students_in_group(group_id):
            for task in s.custom_tasks:
                if task.title not in stats:
                    stats[task.title] = {
                        "count": 0,
                        "type": task.type.value,
                        "description": task.target_description,
                    }
                stats[task.title]["count"] += 1
        return stats

    def group_overview(self, group_id: str, today: date) -> dict:
        students = self.students_in_group(group_id)
        total_logs = sum(len(s.logs) for s in students)
        avg_streak = round(sum(s.streak for s in students) / (len(students) or 1))
        active_today = sum(1 for s in students if any(l.date == today for l in s.logs))

        pending = []
        for s in students:
            count = sum(1 for l in s.logs if not l.is_verified)
            if count:
                pending.append({"id": s.id, "name": s.name, "pending_count": count})
        pending.sort(key=lambda p: p["pending_count"], reverse=True)

        return {
            "student_count": len(students),
            "total_logs": total_logs,
            "avg_streak": avg_streak,
            "active_today": active_today,
            "pending_verification": pending,
            "group_tasks": self.group_task_stats(group_id),
            "xp_chart": [{"name": s.name.split(" ")[0], "xp": s.total_xp} for s in students],
        }

    def regenerate_join_code(self, group_id: str, year: int | None = None) -> Optional[str]:
        alphabet = string.ascii_uppercase + string.digits
        code = "ATLAS" + "".join(secrets.choice(alphabet) for _ in range(4)) + str(year or date.today().year)
        with self._lock:
            group = self._groups.get(group_id)
            if group is None:
                return None
            self._groups[group_id] = replace(group, join_code=code)
        return code

    def leaderboard(self, group_id: str) -> list[Student]:
        return sorted(self.students_in_group(group_id), key=lambda s: s.total_xp, reverse=True)

    # ── Profiles ───────────────────────────────────────────────────────

    def update_profile(self, role: str, record_id: str, *, name: str | None = None,
                       username: str | None = None, avatar: str | None = None) -> dict:
        with self._lock:
            records = self._students if role == "student" else self._mentors
            record = records.get(record_id)
            if record is None:
                return {"success": False, "error": "Account not found."}
            if username and username != record.username and self.username_taken(username):
                return {"success": False, "error": "Username already taken."}
            updated = replace(
                record,
                name=name or record.name,
                username=username or record.username,
                avatar_url=avatar if avatar is not None else record.avatar_url,
            )
            records[record_id] = updated
        return {"success": True, "user": updated}

    # ── Registration ───────────────────────────────────────────────────

    def register_mentor(self, name: str, username: str, code: str,
                        registration_code: str) -> dict:
        if not name or not username or not code:
            return {"success": False, "error": "Name, username and code are required."}
        if code != registration_code:
            return {"success": False, "error": "Invalid mentor registration code."}
        with self._lock:
            if self.username_taken(username):
                return {"success": False, "error": "Username already taken."}
            mentor_id = new_id("m")
            group = Group(
                id=new_id("g"),
                name=f"{name}'s Group",
                mentor_id=mentor_id,
                join_code=f"GRP{secrets.randbelow(10000):04d}",
            )
            mentor = Mentor(id=mentor_id, name=name, username=username, group_ids=[group.id])
            self._groups[group.id] = group
            self._mentors[mentor.id] = mentor
        logger.info("Registered mentor %s with group %s", mentor.id, group.id)
        return {"success": True, "mentor": mentor, "group": group}

    def register_student(self, name: str, username: str, join_code: str) -> dict:
        if not name or not username or not join_code:
            return {"success": False, "error": "Name, username and join code are required."}
        group = self.find_group_by_code(join_code)
        if group is None:
            return {"success": False, "error": "No group found for that join code."}
        with self._lock:
            if self.username_taken(username):
                return {"success": False, "error": "Username already taken."}
            student = Student(
                id=new_id("s"),
                name=name,
                username=username,
                avatar_url=avatar_url(username),
                group_id=group.id,
            )
            self._students[student.id] = student
        logger.info("Registered student %s in group %s", student.id, group.id)
        return {"success": True, "student": student, "group": group}
