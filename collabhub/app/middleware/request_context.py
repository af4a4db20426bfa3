"""
middleware/request_context.py - Per-request id, access log, and client metadata.

register_request_hooks(app) attaches:
  - before_request: assigns g.request_id (incoming X-Request-ID or a new
    uuid4 hex) and starts a timer
  - after_request:  echoes X-Request-ID and writes one access-log line

client_meta() returns the fields audit_service.record() wants from the
HTTP layer, so routes can pass them without services touching flask.request.
audit() is the route-side shorthand: current actor + client metadata +
db.session.
"""

from __future__ import annotations

import time
import uuid

from flask import Flask, g, request

from collabhub.app.extensions import db
from collabhub.app.services import audit_service

REQUEST_ID_HEADER = "X-Request-ID"


def client_meta() -> dict:
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


def audit(
        action: str,
        entity_type: str,
        entity_id: int | str | None = None,
        metadata: dict | None = None,
        actor_id: int | None = None,
) -> None:
    """Best-effort audit row for the current request. Never raises on DB errors."""
    audit_service.record(
        db.session,
        actor_id=actor_id if actor_id is not None else g.get("user_id"),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata,
        **client_meta(),
    )


def register_request_hooks(app: Flask) -> None:

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        started = g.get("request_started")
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        app.logger.info(
            "%s %s %s %.1fms request_id=%s",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
