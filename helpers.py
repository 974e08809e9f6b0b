"""
Shared helpers used across blueprints and stores.

Ids, dates, avatar URLs and the role decorators.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone
from functools import wraps
from typing import Any
from urllib.parse import urlencode

from flask import abort, current_app
from flask_login import current_user

AVATAR_BASE_URL = "https://api.dicebear.com/7.x/avataaars/svg"


def new_id(prefix: str) -> str:
    """Collision-resistant record id, e.g. 's-3f2a...'."""
    return f"{prefix}-{uuid.uuid4().hex}"


def today() -> date:
    return date.today()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def avatar_url(seed: str, **options: str) -> str:
    """DiceBear avatar for a seed. Same seed, same picture."""
    params = {"seed": seed, **options}
    return f"{AVATAR_BASE_URL}?{urlencode(params)}"


def avatar_presets(username: str, n: int = 5) -> list[str]:
    return [avatar_url(f"{username}{i}") for i in range(n)]


def multiplier_weekdays() -> tuple[int, ...]:
    return tuple(current_app.config.get("MULTIPLIER_WEEKDAYS", (5, 6)))


def current_student():
    """The logged-in student record, or None for mentors and anonymous users."""
    from extensions import get_store
    if not current_user.is_authenticated or current_user.role != "student":
        return None
    return get_store().get_student(current_user.record_id)


def current_mentor():
    from extensions import get_store
    if not current_user.is_authenticated or current_user.role != "mentor":
        return None
    return get_store().get_mentor(current_user.record_id)


def student_required(f: Callable) -> Callable:
    """Decorator that requires a logged-in student."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            abort(401)
        if getattr(current_user, "role", "") != "student":
            abort(403)
        return f(*args, **kwargs)
    return decorated


def mentor_required(f: Callable) -> Callable:
    """Decorator that requires a logged-in mentor."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            abort(401)
        if getattr(current_user, "role", "") != "mentor":
            abort(403)
        return f(*args, **kwargs)
    return decorated
