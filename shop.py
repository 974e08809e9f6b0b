"""Coin shop — streak protection and avatar unlocks."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional

from helpers import avatar_url
from models import STREAK_FREEZE, InventoryItem, Student

SHOP_ITEMS = {
    "streak_freeze": {
        "name": "Streak Freeze",
        "description": "Miss a day without losing your streak. Used automatically.",
        "cost": 1000,
        "type": "consumable",
    },
    "avatar_king": {
        "name": "King Avatar",
        "description": "A royal crown for your profile.",
        "cost": 5000,
        "type": "avatar",
        "avatar_url": avatar_url("King", clothing="graphicShirt"),
    },
    "avatar_ninja": {
        "name": "Ninja Avatar",
        "description": "Quiet and quick.",
        "cost": 2500,
        "type": "avatar",
        "avatar_url": avatar_url("Ninja", clothing="blazerAndShirt"),
    },
    "avatar_mystery": {
        "name": "Mystery Avatar",
        "description": "Legendary status, for the richest and most loyal students.",
        "cost": 10000,
        "type": "avatar",
        "avatar_url": avatar_url(
            "Mystery", top="hat", accessories="sunglasses",
            clothing="blazerAndShirt", skinColor="pale",
        ),
    },
}


def catalogue() -> list[dict]:
    return [{"id": item_id, **item} for item_id, item in SHOP_ITEMS.items()]


def add_item(student: Student, item_type: str, count: int = 1) -> Student:
    if any(i.type == item_type for i in student.inventory):
        inventory = [
            replace(i, count=i.count + count) if i.type == item_type else i
            for i in student.inventory
        ]
    else:
        inventory = student.inventory + [
            InventoryItem(id=f"inv-{uuid.uuid4().hex}", type=item_type, count=count)
        ]
    return replace(student, inventory=inventory)


def purchase(student: Student, item_id: str) -> tuple[Student, Optional[str]]:
    """Buy one item. Returns the updated student and an error message (or None)."""
    item = SHOP_ITEMS.get(item_id)
    if item is None:
        return student, "Unknown item."
    if student.coins < item["cost"]:
        return student, "Not enough coins."

    updated = replace(student, coins=student.coins - item["cost"])
    if item["type"] == "consumable":
        updated = add_item(updated, STREAK_FREEZE)
    elif item["type"] == "avatar":
        updated = replace(updated, avatar_url=item["avatar_url"])
    return updated, None
