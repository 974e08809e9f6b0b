"""Profile settings, avatar presets and temporary reward toggles."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

import rewards as reward_rules
from extensions import get_store
from helpers import avatar_presets, current_mentor, current_student, student_required, utcnow

bp = Blueprint("settings", __name__)


def _current_record():
    return current_student() if current_user.role == "student" else current_mentor()


@bp.route("/api/settings/profile", methods=["GET"])
@login_required
def settings_profile():
    record = _current_record()
    if record is None:
        return jsonify({"error": "Account not found."}), 404
    body = {"user": record.to_dict()}
    if current_user.role == "mentor":
        group = get_store().mentor_group(record)
        body["group"] = group.to_dict() if group else None
    return jsonify(body)


@bp.route("/api/settings/profile", methods=["POST"])
@login_required
def settings_update_profile():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip() or None
    username = (data.get("username") or "").strip() or None
    avatar = data.get("avatar_url")

    result = get_store().update_profile(
        current_user.role, current_user.record_id,
        name=name, username=username, avatar=avatar,
    )
    if not result["success"]:
        return jsonify(result), 400
    return jsonify({"success": True, "user": result["user"].to_dict()})


@bp.route("/api/settings/avatars")
@login_required
def settings_avatars():
    record = _current_record()
    if record is None:
        return jsonify({"error": "Account not found."}), 404
    return jsonify({"avatars": avatar_presets(record.username or record.name)})


@bp.route("/api/settings/rewards")
@student_required
def settings_rewards():
    student = current_student()
    if student is None:
        return jsonify({"error": "Student not found."}), 404
    now = utcnow()
    return jsonify({
        "rewards": [reward_rules.describe(r) for r in reward_rules.active_rewards(student.active_rewards, now)],
        "display_reward": reward_rules.display_reward(student.active_rewards, now),
    })


@bp.route("/api/settings/rewards/<reward_id>/toggle", methods=["POST"])
@student_required
def settings_toggle_reward(reward_id):
    result = get_store().toggle_reward(current_user.record_id, reward_id)
    if not result["success"]:
        return jsonify(result), 404
    now = utcnow()
    student = result["student"]
    return jsonify({
        "success": True,
        "rewards": [reward_rules.describe(r) for r in reward_rules.active_rewards(student.active_rewards, now)],
        "display_reward": reward_rules.display_reward(student.active_rewards, now),
    })
