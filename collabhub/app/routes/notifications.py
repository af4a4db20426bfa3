"""
routes/notifications.py - Server-Sent Events stream and history.

The stream response holds a WSGI worker thread for as long as the client
stays connected; run the server threaded (the default for `flask run`) or
behind a worker class that tolerates long-lived responses.

Endpoints (base url_prefix=/api/v1/notifications):
  GET    /notifications/stream  → 200 text/event-stream
  GET    /notifications/recent  → 200
"""

from __future__ import annotations

from flask import Blueprint, Response, g, jsonify, stream_with_context

from collabhub.app.extensions import notification_hub
from collabhub.app.middleware.auth_middleware import require_auth

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.route("/stream", methods=["GET"])
@require_auth
def stream():
    """GET /notifications/stream - Live events for the caller's user id and role."""
    subscription = notification_hub.subscribe(g.user_id, g.role)
    return Response(
        stream_with_context(subscription.stream()),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@notifications_bp.route("/recent", methods=["GET"])
@require_auth
def recent():
    result = notification_hub.recent_for(g.user_id, g.role)
    return jsonify({"data": result, "warnings": []}), 200
