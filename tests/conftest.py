"""
Test fixtures for Atlas Companion.

Provides app, client, student_client, mentor_client and store fixtures on a
freshly seeded in-memory store. Gemini is never reached: the motivation tests
patch resilient_llm_call and the testing config has no API key.
"""

from __future__ import annotations

import pytest
from datetime import date, datetime, timedelta, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(autouse=True)
def reset_singletons():
    """Clear the motivation memo and circuit breaker between tests."""
    from ai_resilience import get_circuit_breaker
    from motivation import get_cache
    get_cache().clear()
    get_circuit_breaker().reset()
    yield
    get_cache().clear()
    get_circuit_breaker().reset()


@pytest.fixture
def app():
    """App with the demo group seeded and no weekend multiplier."""
    from app import create_app

    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "SEED_DEMO_DATA": True,
        "SWEEP_ON_STARTUP": False,
        "MULTIPLIER_WEEKDAYS": (),
        "MENTOR_REGISTRATION_CODE": "ATLAS2025",
        "CRON_SECRET": "cron-test-secret",
        "GOOGLE_API_KEY": "",
    })
    yield app


@pytest.fixture
def store(app):
    from extensions import get_store
    return get_store()


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def student_client(app):
    """Test client logged in as the demo student Yusuf Efe (s1)."""
    client = app.test_client()
    with client:
        client.post("/login", json={"role": "student", "username": "yusufefe"})
        yield client


@pytest.fixture
def mentor_client(app):
    """Test client logged in as the demo mentor Ahmet Hoca (m1)."""
    client = app.test_client()
    with client:
        client.post("/login", json={"role": "mentor", "username": "ahmethoca"})
        yield client


# ── Record builders ─────────────────────────────────────────


@pytest.fixture
def today():
    return date(2026, 3, 11)  # a Wednesday


@pytest.fixture
def now():
    return datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_student():
    from models import Student

    def _make(**overrides):
        fields = {
            "id": "s-test",
            "name": "Test Student",
            "username": "tester",
            "avatar_url": "",
            "group_id": "g1",
        }
        fields.update(overrides)
        return Student(**fields)
    return _make


@pytest.fixture
def make_log():
    from models import LogEntry, TaskType

    counter = {"n": 0}

    def _make(day, task_type=TaskType.QURAN, value=1, details=None, **kw):
        counter["n"] += 1
        return LogEntry(id=f"log{counter['n']}", date=day, type=TaskType(task_type),
                        value=value, details=details, **kw)
    return _make


@pytest.fixture
def freeze():
    from models import STREAK_FREEZE, InventoryItem

    def _make(count):
        return InventoryItem(id="inv-freeze", type=STREAK_FREEZE, count=count)
    return _make


