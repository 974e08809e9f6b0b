"""Student dashboard, activity logging and daily motivation routes."""

from __future__ import annotations

import math

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

import gamification
import rewards as reward_rules
from extensions import get_store
from helpers import multiplier_weekdays, student_required, today, utcnow
from models import TASK_LABELS, Student, TaskType
from motivation import get_daily_motivation

bp = Blueprint("dashboard", __name__)


def rank_payload(xp: int) -> dict:
    rank = gamification.get_rank(xp)
    upcoming = gamification.next_rank(xp)
    return {
        "name": rank.name,
        "min_xp": rank.min_xp,
        "next": upcoming.name if upcoming else None,
        "xp_to_next": upcoming.min_xp - xp if upcoming else 0,
    }


def student_payload(student: Student) -> dict:
    day = today()
    now = utcnow()
    progress = gamification.custom_task_progress(student.logs, day, student.custom_tasks)
    return {
        **student.to_dict(),
        "rank": rank_payload(student.total_xp),
        "streak_tier": gamification.streak_tier(student.streak),
        "streak_freezes": student.streak_freezes,
        "daily_goal_met": gamification.is_daily_goal_met(student.logs, day, student.custom_tasks),
        "custom_task_progress": [
            {**task.to_dict(), "done": done} for task, done in progress
        ],
        "logged_types_today": sorted({l.type.value for l in student.logs if l.date == day}),
        "active_rewards": [reward_rules.describe(r) for r in reward_rules.active_rewards(student.active_rewards, now)],
        "display_reward": reward_rules.display_reward(student.active_rewards, now),
        "multiplier_day": gamification.is_multiplier_day(day, multiplier_weekdays()),
    }


@bp.route("/api/dashboard")
@student_required
def api_dashboard():
    store = get_store()
    student = store.decay_student(current_user.record_id, today())
    if student is None:
        return jsonify({"error": "Student not found."}), 404
    return jsonify({
        "student": student_payload(student),
        "task_types": [{"id": t.value, "label": TASK_LABELS[t]} for t in TaskType],
    })


@bp.route("/api/logs", methods=["POST"])
@student_required
def api_log_activity():
    data = request.get_json(silent=True) or {}
    try:
        task_type = TaskType(data.get("type", ""))
    except ValueError:
        return jsonify({"error": "Unknown activity type."}), 400
    raw_value = data.get("value", 0)
    if isinstance(raw_value, bool):
        return jsonify({"error": "Value must be a number."}), 400
    try:
        value = float(raw_value)
    except (TypeError, ValueError):
        return jsonify({"error": "Value must be a number."}), 400
    if not math.isfinite(value):
        return jsonify({"error": "Value must be a number."}), 400
    if value <= 0:
        return jsonify({"error": "Value must be greater than zero."}), 400
    if value.is_integer():
        value = int(value)
    details = (data.get("details") or "").strip() or None

    result = get_store().log_activity(
        current_user.record_id, task_type, value, details,
        day=today(), multiplier_weekdays=multiplier_weekdays(),
    )
    if not result["success"]:
        return jsonify(result), 404

    return jsonify({
        "success": True,
        "log": result["log"].to_dict(),
        "xp_earned": result["reward"].xp,
        "coins_earned": result["reward"].coins,
        "multiplier_day": result["multiplier_day"],
        "goal_completed": result["goal_completed"],
        "student": student_payload(result["student"]),
    }), 201


@bp.route("/api/motivation")
@student_required
def api_motivation():
    student = get_store().get_student(current_user.record_id)
    if student is None:
        return jsonify({"error": "Student not found."}), 404
    message = get_daily_motivation(
        student.name,
        student.logs,
        today=today(),
        model=current_app.config.get("MOTIVATION_MODEL", "gemini-2.0-flash"),
        api_key=current_app.config.get("GOOGLE_API_KEY", ""),
    )
    return jsonify({"message": message})
