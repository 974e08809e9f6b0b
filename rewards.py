"""Temporary cosmetic rewards — expiry filtering, visibility toggle and grants."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from models import TemporaryReward

GOLD_GLOW = "GOLD_GLOW"
NEON_FRAME = "NEON_FRAME"
RAINBOW_NAME = "RAINBOW_NAME"

REWARD_DEFINITIONS = {
    GOLD_GLOW: {"name": "Gold Glow", "effect": "glow"},
    NEON_FRAME: {"name": "Neon Frame", "effect": "frame"},
    RAINBOW_NAME: {"name": "Rainbow Name", "effect": "name_color"},
}

# Highest precedence first when only one visual slot is available.
DISPLAY_PRIORITY = [GOLD_GLOW, NEON_FRAME, RAINBOW_NAME]


def active_rewards(rewards: list[TemporaryReward], now: datetime) -> list[TemporaryReward]:
    """Unexpired rewards, regardless of their visibility flag. Nothing is deleted."""
    return [r for r in rewards if r.expires_at > now]


def visible_rewards(rewards: list[TemporaryReward], now: datetime) -> list[TemporaryReward]:
    return [r for r in active_rewards(rewards, now) if r.is_active]


def toggle_reward(rewards: list[TemporaryReward], reward_id: str) -> list[TemporaryReward]:
    return [
        replace(r, is_active=not r.is_active) if r.id == reward_id else r
        for r in rewards
    ]


def display_reward(rewards: list[TemporaryReward], now: datetime) -> Optional[str]:
    """Pick the single reward that wins an exclusive visual slot."""
    visible = {r.id for r in visible_rewards(rewards, now)}
    for reward_id in DISPLAY_PRIORITY:
        if reward_id in visible:
            return reward_id
    return None


def grant_reward(rewards: list[TemporaryReward], reward_id: str,
                 duration: timedelta, now: datetime) -> list[TemporaryReward]:
    """Add a reward, or restart the clock on one the student already holds."""
    if reward_id not in REWARD_DEFINITIONS:
        raise ValueError(f"Unknown reward: {reward_id}")
    expires_at = now + duration
    granted = TemporaryReward(id=reward_id, expires_at=expires_at, is_active=True)
    if any(r.id == reward_id for r in rewards):
        return [granted if r.id == reward_id else r for r in rewards]
    return rewards + [granted]


def describe(reward: TemporaryReward) -> dict:
    info = REWARD_DEFINITIONS.get(reward.id, {"name": reward.id, "effect": ""})
    return {**reward.to_dict(), **info}
