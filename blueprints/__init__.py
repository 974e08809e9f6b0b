"""
Blueprint registration for Atlas Companion.

All blueprints are registered without URL prefixes; routes carry their own /api paths.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.dashboard import bp as dashboard_bp
    from blueprints.market import bp as market_bp
    from blueprints.leaderboard import bp as leaderboard_bp
    from blueprints.mentor import bp as mentor_bp
    from blueprints.settings import bp as settings_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(market_bp)
    app.register_blueprint(leaderboard_bp)
    app.register_blueprint(mentor_bp)
    app.register_blueprint(settings_bp)
