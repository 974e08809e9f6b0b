"""
Centralized Scheduler — periodic background jobs.

Jobs:
  - Midnight streak sweep (00:00 every day)
  - Audit trail size report (every 6 hours)
"""

from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler


def midnight_sweep(app):
    """Run the inactivity sweep for today's date."""
    with app.app_context():
        from extensions import get_store
        try:
            changed = get_store().sweep()
            app.logger.info("Scheduled midnight sweep updated %d students", changed)
        except Exception as e:
            app.logger.error("Midnight sweep failed: %s", e, exc_info=True)


def init_scheduler(app) -> BackgroundScheduler:
    """Start the background scheduler and return it."""
    scheduler = BackgroundScheduler(daemon=True)

    scheduler.add_job(
        func=midnight_sweep,
        args=[app],
        trigger="cron",
        hour=0,
        minute=0,
        id="midnight_sweep",
        replace_existing=True,
    )

    def _report_audit_trail():
        from extensions import get_store
        app.logger.info("Audit trail holds %d events", len(get_store().audit_trail))

    scheduler.add_job(
        func=_report_audit_trail,
        trigger="interval",
        hours=6,
        id="audit_report",
        replace_existing=True,
    )

    scheduler.start()
    app.logger.info("Scheduler started (midnight sweep, audit report)")
    return scheduler
