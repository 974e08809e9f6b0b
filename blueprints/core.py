"""Core routes — index, health checks and the cron-triggered sweep."""

from __future__ import annotations

import logging
import time

from flask import Blueprint, current_app, jsonify, request

from extensions import get_store

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__)

_start_time = time.time()


@bp.route("/")
def index():
    return jsonify({"name": "Atlas Companion", "status": "ok"})


# ── Health checks ─────────────────────────────────────────

@bp.route("/health")
def health():
    uptime = int(time.time() - _start_time)
    return jsonify({"status": "ok", "uptime_seconds": uptime})


@bp.route("/ready")
def ready():
    store = get_store()
    return jsonify({
        "status": "ready",
        "students": len(store.all_students()),
        "groups": len(store.all_groups()),
        "last_sweep": store.last_sweep.isoformat() if store.last_sweep else None,
    }), 200


@bp.route("/live")
def live():
    return jsonify({"status": "alive"}), 200


# ── Cron Endpoint ─────────────────────────────────────────
# For hosts without a long-running scheduler. Authenticated via CRON_SECRET.

def _verify_cron_secret():
    expected = current_app.config.get("CRON_SECRET", "")
    if not expected:
        return False
    return request.headers.get("Authorization") == f"Bearer {expected}"


@bp.route("/api/cron/midnight-sweep", methods=["POST"])
def cron_midnight_sweep():
    if not _verify_cron_secret():
        return jsonify({"error": "Unauthorized"}), 401
    changed = get_store().sweep()
    logger.info("Cron midnight sweep updated %d students", changed)
    return jsonify({"status": "ok", "updated": changed})
