"""Group leaderboard route."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

import gamification
import rewards as reward_rules
from blueprints.dashboard import rank_payload
from extensions import get_store
from helpers import utcnow

bp = Blueprint("leaderboard", __name__)


@bp.route("/api/leaderboard")
@login_required
def api_leaderboard():
    store = get_store()
    if current_user.role == "student":
        student = store.get_student(current_user.record_id)
        group_id = student.group_id if student else None
    else:
        mentor = store.get_mentor(current_user.record_id)
        group_id = mentor.primary_group_id if mentor else None
    if not group_id:
        return jsonify({"error": "No group."}), 404

    now = utcnow()
    return jsonify({
        "group_id": group_id,
        "entries": [
            {
                "position": i + 1,
                "id": s.id,
                "name": s.name,
                "avatar_url": s.avatar_url,
                "total_xp": s.total_xp,
                "streak": s.streak,
                "streak_tier": gamification.streak_tier(s.streak),
                "badges": list(s.badges),
                "rank": rank_payload(s.total_xp),
                "display_reward": reward_rules.display_reward(s.active_rewards, now),
            }
            for i, s in enumerate(store.leaderboard(group_id))
        ],
    })
