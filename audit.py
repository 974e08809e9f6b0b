"""
Audit logging — records security-relevant events.

Events go to the store's bounded audit trail and to structured logging.
"""

from __future__ import annotations

import logging

from flask import has_request_context, request

logger = logging.getLogger(__name__)


def log_event(action: str, actor: str | None = None, detail: str = "") -> None:
    """Append an audit entry and emit a structured log line."""
    from extensions import get_store

    ip = (request.remote_addr or "") if has_request_context() else ""
    get_store().record_event(action, actor, detail)
    logger.info("audit: %s actor=%s detail=%s ip=%s", action, actor, detail, ip)
