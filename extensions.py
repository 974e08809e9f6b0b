"""
Singleton management for the state owner and the rate limiter.

The AppStore lives for the whole process; create_app() installs it and
everything else reaches it through get_store().
"""

from __future__ import annotations

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from store import AppStore

limiter = Limiter(key_func=get_remote_address, default_limits=["300 per hour"])


class StoreManager:
    """Process-wide AppStore holder."""

    _store: AppStore | None = None

    @classmethod
    def get(cls) -> AppStore:
        if cls._store is None:
            cls._store = AppStore()
        return cls._store

    @classmethod
    def install(cls, store: AppStore) -> AppStore:
        cls._store = store
        return store

    @classmethod
    def reset(cls):
        cls._store = None


def get_store() -> AppStore:
    return StoreManager.get()
