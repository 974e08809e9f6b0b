"""Coin shop routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user

import shop
from extensions import get_store
from helpers import current_student, student_required

bp = Blueprint("market", __name__)


@bp.route("/api/shop")
@student_required
def api_shop():
    student = current_student()
    if student is None:
        return jsonify({"error": "Student not found."}), 404
    return jsonify({
        "coins": student.coins,
        "items": [
            {**item, "affordable": student.coins >= item["cost"]}
            for item in shop.catalogue()
        ],
        "inventory": [i.to_dict() for i in student.inventory],
    })


@bp.route("/api/shop/buy", methods=["POST"])
@student_required
def api_buy():
    data = request.get_json(silent=True) or {}
    item_id = data.get("item_id", "")
    if not item_id:
        return jsonify({"success": False, "error": "item_id is required."}), 400

    result = get_store().buy_item(current_user.record_id, item_id)
    if not result["success"]:
        return jsonify(result), 400
    student = result["student"]
    return jsonify({
        "success": True,
        "coins": student.coins,
        "avatar_url": student.avatar_url,
        "inventory": [i.to_dict() for i in student.inventory],
    })
