"""Mentor routes — group overview, log verification, custom tasks and reward grants."""

from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request

import rewards as reward_rules
from audit import log_event
from blueprints.dashboard import student_payload
from extensions import get_store
from helpers import current_mentor, mentor_required, today, utcnow
from models import TaskType

bp = Blueprint("mentor", __name__)

MAX_REWARD_DAYS = 365


def _mentor_group():
    mentor = current_mentor()
    if mentor is None:
        abort(404)
    group = get_store().mentor_group(mentor)
    if group is None:
        abort(404)
    return mentor, group


def _own_student(student_id: str):
    """Student in the mentor's group, or 404."""
    _, group = _mentor_group()
    student = get_store().get_student(student_id)
    if student is None or student.group_id != group.id:
        abort(404)
    return student


def _task_type(raw: str | None) -> TaskType | None:
    try:
        return TaskType(raw or TaskType.NAMAZ.value)
    except ValueError:
        return None


# ── Overview ───────────────────────────────────────────────

@bp.route("/api/mentor/overview")
@mentor_required
def mentor_overview():
    mentor, group = _mentor_group()
    store = get_store()
    return jsonify({
        "mentor": mentor.to_dict(),
        "group": group.to_dict(),
        "stats": store.group_overview(group.id, today()),
        "students": [
            {"id": s.id, "name": s.name, "avatar_url": s.avatar_url,
             "streak": s.streak, "total_xp": s.total_xp}
            for s in store.students_in_group(group.id)
        ],
    })


@bp.route("/api/mentor/students/<student_id>")
@mentor_required
def mentor_student_detail(student_id):
    student = _own_student(student_id)
    pending = sorted((l for l in student.logs if not l.is_verified),
                     key=lambda l: l.date, reverse=True)
    history = sorted((l for l in student.logs if l.is_verified),
                     key=lambda l: l.date, reverse=True)[:15]
    return jsonify({
        "student": student_payload(student),
        "pending_logs": [l.to_dict() for l in pending],
        "history_logs": [l.to_dict() for l in history],
    })


# ── Verification ───────────────────────────────────────────

@bp.route("/api/mentor/students/<student_id>/logs/<log_id>/verify", methods=["POST"])
@mentor_required
def mentor_toggle_verification(student_id, log_id):
    _own_student(student_id)
    result = get_store().toggle_verification(student_id, log_id)
    if not result["success"]:
        return jsonify(result), 404
    log = next(l for l in result["student"].logs if l.id == log_id)
    return jsonify({"success": True, "log": log.to_dict()})


@bp.route("/api/mentor/students/<student_id>/approve-all", methods=["POST"])
@mentor_required
def mentor_approve_all(student_id):
    _own_student(student_id)
    result = get_store().approve_all(student_id)
    if not result["success"]:
        return jsonify(result), 404
    return jsonify({"success": True, "verified": len(result["student"].logs)})


# ── Custom tasks ───────────────────────────────────────────

@bp.route("/api/mentor/students/<student_id>/tasks", methods=["POST"])
@mentor_required
def mentor_add_task(student_id):
    _own_student(student_id)
    data = request.get_json(silent=True) or {}
    title = (data.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Title is required."}), 400
    task_type = _task_type(data.get("type"))
    if task_type is None:
        return jsonify({"error": "Unknown activity type."}), 400

    result = get_store().add_custom_task(
        student_id, title, (data.get("description") or "").strip(), task_type,
    )
    if not result["success"]:
        return jsonify(result), 404
    return jsonify({"success": True, "task": result["task"].to_dict()}), 201


@bp.route("/api/mentor/students/<student_id>/tasks/<task_id>", methods=["DELETE"])
@mentor_required
def mentor_remove_task(student_id, task_id):
    _own_student(student_id)
    result = get_store().remove_custom_task(student_id, task_id)
    if not result["success"]:
        return jsonify(result), 404
    return jsonify({"success": True})


@bp.route("/api/mentor/group-tasks", methods=["GET"])
@mentor_required
def mentor_group_tasks():
    _, group = _mentor_group()
    return jsonify({"tasks": get_store().group_task_stats(group.id)})


@bp.route("/api/mentor/group-tasks", methods=["POST"])
@mentor_required
def mentor_add_group_task():
    _, group = _mentor_group()
    data = request.get_json(silent=True) or {}
    title = (data.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Title is required."}), 400
    task_type = _task_type(data.get("type"))
    if task_type is None:
        return jsonify({"error": "Unknown activity type."}), 400

    assigned = get_store().add_group_task(
        group.id, title, (data.get("description") or "").strip(), task_type,
    )
    return jsonify({"success": True, "assigned": assigned}), 201


@bp.route("/api/mentor/group-tasks", methods=["DELETE"])
@mentor_required
def mentor_remove_group_task():
    _, group = _mentor_group()
    data = request.get_json(silent=True) or {}
    title = (data.get("title") or request.args.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Title is required."}), 400
    removed = get_store().remove_group_task(group.id, title)
    return jsonify({"success": True, "removed": removed})


# ── Group code & rewards ───────────────────────────────────

@bp.route("/api/mentor/group/code", methods=["POST"])
@mentor_required
def mentor_regenerate_code():
    mentor, group = _mentor_group()
    code = get_store().regenerate_join_code(group.id, today().year)
    log_event("join_code_regenerated", f"mentor:{mentor.id}", f"group={group.id}")
    return jsonify({"success": True, "join_code": code})


@bp.route("/api/mentor/students/<student_id>/rewards", methods=["POST"])
@mentor_required
def mentor_grant_reward(student_id):
    _own_student(student_id)
    data = request.get_json(silent=True) or {}
    reward_id = data.get("reward_id", "")
    try:
        days = int(data.get("days", current_app.config.get("REWARD_DEFAULT_DAYS", 1)))
    except (TypeError, ValueError):
        return jsonify({"error": "days must be an integer."}), 400
    if days > MAX_REWARD_DAYS:
        return jsonify({"error": f"days must be at most {MAX_REWARD_DAYS}."}), 400

    result = get_store().grant_reward(student_id, reward_id, days, utcnow())
    if not result["success"]:
        return jsonify(result), 400
    return jsonify({
        "success": True,
        "rewards": [reward_rules.describe(r) for r in result["student"].active_rewards],
    }), 201
