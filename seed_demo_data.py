"""
Seed Demo Data — one mentor, one group and two students.

The students' dates are relative to the seeding day, so the demo always shows
a live streak (logged yesterday) next to one about to be swept (no logs).

Usage:
    python seed_demo_data.py     # print the seeded records as JSON
"""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

from models import (
    STREAK_FREEZE,
    CustomTask,
    Group,
    InventoryItem,
    LogEntry,
    Mentor,
    Student,
    TaskType,
    TemporaryReward,
)

DEMO_GROUP = {"id": "g1", "name": "Yıldızlar Grubu (Lise 2)", "mentor_id": "m1", "join_code": "YILDIZ2025"}
DEMO_MENTOR = {"id": "m1", "name": "Ahmet Hoca", "username": "ahmethoca"}


def demo_students(today: date, now: datetime) -> list[Student]:
    yesterday = today - timedelta(days=1)
    return [
        Student(
            id="s1",
            name="Yusuf Efe",
            username="yusufefe",
            avatar_url="https://picsum.photos/200/200?random=1",
            group_id="g1",
            streak=12,
            total_xp=4520,
            coins=450,
            level=5,
            badges=["Erken Kalkan", "Kuran Bülbülü"],
            inventory=[InventoryItem(id="inv1", type=STREAK_FREEZE, count=1)],
            custom_tasks=[
                CustomTask(id="ct1", title="Teheccüd Namazı", target_description="2 Rekat",
                           type=TaskType.NAMAZ),
            ],
            logs=[
                LogEntry(id="l1", date=yesterday, type=TaskType.QURAN, value=5, is_verified=True),
                LogEntry(id="l2", date=yesterday, type=TaskType.ZIKIR, value=300, is_verified=True),
            ],
        ),
        Student(
            id="s2",
            name="Ömer Faruk",
            username="omerfaruk",
            avatar_url="https://picsum.photos/200/200?random=2",
            group_id="g1",
            streak=45,
            total_xp=16400,
            coins=2400,
            level=12,
            badges=["İstikrar Abidesi", "Hafız Namzeti"],
            active_rewards=[
                TemporaryReward(id="RAINBOW_NAME", expires_at=now + timedelta(days=1), is_active=True),
            ],
        ),
    ]


def seed(store, today: date | None = None, now: datetime | None = None) -> dict:
    """Load the demo records into an AppStore. Returns a summary dict."""
    today = today or date.today()
    now = now or datetime.now(timezone.utc)

    store.add_group(Group(**DEMO_GROUP))
    store.add_mentor(Mentor(group_ids=[DEMO_GROUP["id"]], **DEMO_MENTOR))
    students = demo_students(today, now)
    for s in students:
        store.add_student(s)

    return {
        "groups": 1,
        "mentors": 1,
        "students": len(students),
        "logs": sum(len(s.logs) for s in students),
    }


if __name__ == "__main__":
    from store import AppStore

    demo = AppStore()
    summary = seed(demo)
    print(json.dumps({
        "summary": summary,
        "students": [s.to_dict() for s in demo.all_students()],
    }, indent=2, ensure_ascii=False))
