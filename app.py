"""
Atlas Companion — Flask Web Application

JSON API behind the habit-tracking single-page app: students log daily
study and worship, earn XP and coins, keep streaks alive; mentors verify
logs and assign tasks to their group.
"""

from __future__ import annotations

import os
from typing import Any

from flask import Flask, Response

from auth import auth_bp, login_manager
from blueprints import register_blueprints
from extensions import StoreManager, limiter
from store import AppStore


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    app.secret_key = app.config["SECRET_KEY"]

    # Structured logging
    from logging_config import init_logging
    init_logging(app)

    # In-memory state, optionally seeded with the demo group
    store = StoreManager.install(AppStore(audit_size=app.config.get("AUDIT_TRAIL_SIZE", 500)))
    if app.config.get("SEED_DEMO_DATA"):
        from seed_demo_data import seed
        summary = seed(store)
        app.logger.info("Seeded demo data: %s", summary)

    # Startup rollover check: streaks idle since before yesterday are protected or reset
    if app.config.get("SWEEP_ON_STARTUP"):
        store.sweep()

    # Motivation memo lifetime
    from motivation import get_cache
    get_cache().ttl_seconds = app.config.get("MOTIVATION_CACHE_SECONDS", 3600)

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    # Register auth blueprint and login manager
    app.register_blueprint(auth_bp)
    login_manager.init_app(app)

    # Register all application blueprints
    register_blueprints(app)

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Daily midnight sweep in the background
    if app.config.get("SCHEDULER_ENABLED") and not app.config.get("TESTING"):
        from scheduler import init_scheduler
        app.extensions["scheduler"] = init_scheduler(app)

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
