"""
Domain records — students, mentors, groups and everything a student owns.

Plain dataclasses with to_dict()/from_dict() helpers. The rule engine never
mutates these in place; it returns replaced copies (dataclasses.replace).
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    MENTOR = "MENTOR"


class TaskType(str, Enum):
    QURAN = "QURAN"                # pages
    RISALE = "RISALE"              # pages
    PIRLANTA = "PIRLANTA"          # pages
    ZIKIR = "ZIKIR"                # count
    BOOK_READING = "BOOK_READING"  # pages
    NAMAZ = "NAMAZ"                # rakat or prayer count


TASK_LABELS = {
    TaskType.QURAN: "Quran",
    TaskType.RISALE: "Risale-i Nur",
    TaskType.PIRLANTA: "Pirlanta Series",
    TaskType.ZIKIR: "Dhikr / Tasbih",
    TaskType.BOOK_READING: "Other Reading",
    TaskType.NAMAZ: "Prayer / Worship",
}

COUNTED_TYPES = {TaskType.ZIKIR, TaskType.NAMAZ}

STREAK_FREEZE = "STREAK_FREEZE"


def _parse_date(value) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


# ── Student-owned records ──────────────────────────────────────────────

@dataclass
class LogEntry:
    id: str
    date: date
    type: TaskType
    value: float
    details: Optional[str] = None   # custom task title this log fulfils
    is_verified: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "value": self.value,
            "details": self.details,
            "is_verified": self.is_verified,
        }

    @staticmethod
    def from_dict(data: dict) -> LogEntry:
        return LogEntry(
            id=data["id"],
            date=_parse_date(data["date"]),
            type=TaskType(data["type"]),
            value=data["value"],
            details=data.get("details") or None,
            is_verified=bool(data.get("is_verified", False)),
        )


@dataclass
class CustomTask:
    id: str
    title: str
    target_description: str
    type: TaskType

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "target_description": self.target_description,
            "type": self.type.value,
        }

    @staticmethod
    def from_dict(data: dict) -> CustomTask:
        return CustomTask(
            id=data["id"],
            title=data["title"],
            target_description=data.get("target_description", ""),
            type=TaskType(data["type"]),
        )


@dataclass
class InventoryItem:
    id: str
    type: str
    count: int

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> InventoryItem:
        return InventoryItem(id=data["id"], type=data["type"], count=int(data["count"]))


@dataclass
class TemporaryReward:
    id: str                 # RAINBOW_NAME | NEON_FRAME | GOLD_GLOW
    expires_at: datetime
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "expires_at": self.expires_at.isoformat(),
            "is_active": self.is_active,
        }

    @staticmethod
    def from_dict(data: dict) -> TemporaryReward:
        return TemporaryReward(
            id=data["id"],
            expires_at=_parse_datetime(data["expires_at"]),
            is_active=bool(data.get("is_active", False)),
        )


# ── Accounts ───────────────────────────────────────────────────────────

@dataclass
class Student:
    id: str
    name: str
    username: str
    avatar_url: str
    group_id: str
    streak: int = 0
    total_xp: int = 0
    coins: int = 0
    level: int = 1
    logs: list[LogEntry] = field(default_factory=list)
    badges: list[str] = field(default_factory=list)
    custom_tasks: list[CustomTask] = field(default_factory=list)
    inventory: list[InventoryItem] = field(default_factory=list)
    active_rewards: list[TemporaryReward] = field(default_factory=list)
    freeze_used_on: Optional[date] = None

    role = UserRole.STUDENT

    def item_count(self, item_type: str) -> int:
        return sum(i.count for i in self.inventory if i.type == item_type)

    @property
    def streak_freezes(self) -> int:
        return self.item_count(STREAK_FREEZE)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "name": self.name,
            "username": self.username,
            "avatar_url": self.avatar_url,
            "group_id": self.group_id,
            "streak": self.streak,
            "total_xp": self.total_xp,
            "coins": self.coins,
            "level": self.level,
            "logs": [l.to_dict() for l in self.logs],
            "badges": list(self.badges),
            "custom_tasks": [t.to_dict() for t in self.custom_tasks],
            "inventory": [i.to_dict() for i in self.inventory],
            "active_rewards": [r.to_dict() for r in self.active_rewards],
            "freeze_used_on": self.freeze_used_on.isoformat() if self.freeze_used_on else None,
        }

    @staticmethod
    def from_dict(data: dict) -> Student:
        freeze_used_on = data.get("freeze_used_on")
        return Student(
            id=data["id"],
            name=data["name"],
            username=data.get("username", ""),
            avatar_url=data.get("avatar_url", ""),
            group_id=data.get("group_id", ""),
            streak=int(data.get("streak", 0)),
            total_xp=int(data.get("total_xp", 0)),
            coins=int(data.get("coins", 0)),
            level=int(data.get("level", 1)),
            logs=[LogEntry.from_dict(l) for l in data.get("logs", [])],
            badges=list(data.get("badges", [])),
            custom_tasks=[CustomTask.from_dict(t) for t in data.get("custom_tasks", [])],
            inventory=[InventoryItem.from_dict(i) for i in data.get("inventory", [])],
            active_rewards=[TemporaryReward.from_dict(r) for r in data.get("active_rewards", [])],
            freeze_used_on=_parse_date(freeze_used_on) if freeze_used_on else None,
        )


@dataclass
class Mentor:
    id: str
    name: str
    username: str
    group_ids: list[str] = field(default_factory=list)
    avatar_url: str = ""

    role = UserRole.MENTOR

    @property
    def primary_group_id(self) -> Optional[str]:
        return self.group_ids[0] if self.group_ids else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "name": self.name,
            "username": self.username,
            "group_ids": list(self.group_ids),
            "avatar_url": self.avatar_url,
        }


@dataclass
class Group:
    id: str
    name: str
    mentor_id: str
    join_code: str

    def to_dict(self) -> dict:
        return asdict(self)
