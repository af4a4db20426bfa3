"""
services/notification_hub.py - In-process notification fan-out over SSE.

Delivery model:
  - Best-effort, at-most-once, fire-and-forget. Nothing is persisted; a
    process restart loses every buffered event and every live connection.
  - Each live SSE connection is a Subscription with its own bounded queue.
    publish() only enqueues; the WSGI worker serving the connection drains
    the queue inside Subscription.stream().
  - Subscriptions are indexed twice - by user id and by role - so an event
    can target either dimension. A connection matching both receives the
    event once.
  - The last `capacity` events are kept newest-first for history replay
    via recent_for().

Threading:
  Flask serves each request on its own thread, so the registry and the
  history buffer are guarded by one lock. publish() takes a snapshot of the
  target subscriptions under the lock and enqueues outside it; a connection
  closing mid-publish may miss that one event.

Layer rules:
  - No Flask request access. init_app() reads config only.
  - No database access.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 120
DEFAULT_HEARTBEAT_SECONDS = 25.0
DEFAULT_QUEUE_SIZE = 100


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Notification:
    """
    An event a domain service wants published once its transaction commits.
    Services return these; routes hand them to NotificationHub.publish_all().
    """
    type: str
    message: str
    data: dict = field(default_factory=dict)
    user_ids: tuple[int, ...] = ()
    roles: tuple[str, ...] = ()


def format_sse(payload: dict) -> str:
    """Frames one payload as a Server-Sent Events `data:` record."""
    return f"data: {json.dumps(payload, default=str)}\n\n"


class Subscription:
    """
    One live SSE connection.

    Created by NotificationHub.subscribe(); the route returns stream() as the
    response body. Closing the generator (client disconnect) unregisters the
    subscription from the hub.
    """

    def __init__(
            self,
            hub: "NotificationHub",
            user_id: int,
            role: str,
            queue_size: int,
    ) -> None:
        self.id      = uuid.uuid4().hex
        self.user_id = user_id
        self.role    = role
        self._hub    = hub
        self._queue: queue.Queue[str] = queue.Queue(maxsize=queue_size)

    def offer(self, frame: str) -> bool:
        """Enqueues a frame without blocking. Returns False if the queue is full."""
        try:
            self._queue.put_nowait(frame)
        except queue.Full:
            return False
        return True

    def next_frame(self, timeout: float | None = None) -> str | None:
        """Returns the next queued frame, or None if `timeout` elapses first."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def stream(self) -> Iterator[str]:
        """
        Yields SSE frames until the consumer closes the generator.

        A heartbeat frame is emitted whenever `heartbeat_seconds` pass
        without another frame. The heartbeat keeps proxies from closing an
        idle connection; it does not detect dead clients.
        """
        try:
            while True:
                frame = self.next_frame(timeout=self._hub.heartbeat_seconds)
                if frame is None:
                    frame = format_sse({"type": "heartbeat", "ts": _now_iso()})
                yield frame
        finally:
            self._hub.unsubscribe(self)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Subscription id={self.id} user_id={self.user_id} role={self.role}>"


class NotificationHub:

    def __init__(
            self,
            capacity: int = DEFAULT_CAPACITY,
            heartbeat_seconds: float = DEFAULT_HEARTBEAT_SECONDS,
            queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self.capacity          = capacity
        self.heartbeat_seconds = heartbeat_seconds
        self.queue_size        = queue_size

        self._lock = threading.Lock()
        self._by_user: dict[int, set[Subscription]] = {}
        self._by_role: dict[str, set[Subscription]] = {}
        self._recent: deque[dict] = deque(maxlen=capacity)

    def init_app(self, app) -> None:
        """Applies NOTIFICATION_* config. Buffered history is resized, not cleared."""
        self.heartbeat_seconds = float(
            app.config.get("NOTIFICATION_HEARTBEAT_SECONDS", DEFAULT_HEARTBEAT_SECONDS)
        )
        self.queue_size = int(app.config.get("NOTIFICATION_QUEUE_SIZE", DEFAULT_QUEUE_SIZE))
        capacity = int(app.config.get("NOTIFICATION_RECENT_CAPACITY", DEFAULT_CAPACITY))
        with self._lock:
            self.capacity = capacity
            self._recent = deque(self._recent, maxlen=capacity)
        app.extensions["notification_hub"] = self

    # ── Connections ────────────────────────────────────────────────────────

    def subscribe(self, user_id: int, role: str) -> Subscription:
        """
        Registers a new connection under both the user bucket and the role
        bucket, and queues the initial "connected" event for it.
        """
        subscription = Subscription(self, int(user_id), role, self.queue_size)
        subscription.offer(format_sse({
            "type": "connected",
            "message": "notification stream connected",
            "ts": _now_iso(),
        }))

        with self._lock:
            self._by_user.setdefault(subscription.user_id, set()).add(subscription)
            self._by_role.setdefault(subscription.role, set()).add(subscription)

        logger.info(
            "SSE subscriber connected (user_id=%s, role=%s, active=%d)",
            subscription.user_id, subscription.role, self.connection_count(),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Removes a connection from both buckets. Empty buckets are pruned. Idempotent."""
        with self._lock:
            _discard(self._by_user, subscription.user_id, subscription)
            _discard(self._by_role, subscription.role, subscription)
        logger.info(
            "SSE subscriber disconnected (user_id=%s, role=%s)",
            subscription.user_id, subscription.role,
        )

    def connection_count(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._by_user.values())

    # ── Events ─────────────────────────────────────────────────────────────

    def publish(
            self,
            type: str,
            message: str,
            data: dict | None = None,
            user_ids: Iterable[int] = (),
            roles: Iterable[str] = (),
    ) -> dict:
        """
        Records an event in the history buffer and pushes it to every live
        connection registered under one of `user_ids` or one of `roles`.

        An event with no targets is recorded but not pushed to anyone.
        Returns the event as delivered.
        """
        event = {
            "id": uuid.uuid4().hex,
            "type": type,
            "message": message,
            "data": data or {},
            "user_ids": [int(uid) for uid in user_ids],
            "roles": list(roles),
            "created_at": _now_iso(),
        }

        with self._lock:
            self._recent.appendleft(event)
            targets: set[Subscription] = set()
            for uid in event["user_ids"]:
                targets.update(self._by_user.get(uid, ()))
            for role in event["roles"]:
                targets.update(self._by_role.get(role, ()))

        frame = format_sse(event)
        for subscription in targets:
            if not subscription.offer(frame):
                logger.warning(
                    "SSE subscriber queue full, dropping %s for user_id=%s",
                    event["type"], subscription.user_id,
                )

        logger.debug("Published %s to %d connection(s)", event["type"], len(targets))
        return event

    def publish_all(self, notifications: Iterable[Notification]) -> int:
        """
        Publishes each notification, logging and skipping any that fail.
        Delivery problems never propagate to the request that caused them.
        Returns the number published.
        """
        published = 0
        for notification in notifications:
            try:
                self.publish(
                    notification.type,
                    notification.message,
                    notification.data,
                    user_ids=notification.user_ids,
                    roles=notification.roles,
                )
            except Exception:
                logger.warning("Notification %s could not be published",
                               notification.type, exc_info=True)
                continue
            published += 1
        return published

    def recent_for(self, user_id: int, role: str) -> list[dict]:
        """
        Buffered events visible to a user, newest first: events naming the
        user or the user's role, plus untargeted events.
        """
        user_id = int(user_id)
        with self._lock:
            events = list(self._recent)
        return [
            event for event in events
            if user_id in event["user_ids"]
            or role in event["roles"]
            or (not event["user_ids"] and not event["roles"])
        ]

    def reset(self) -> None:
        """Drops all history and connections. Test helper."""
        with self._lock:
            self._by_user.clear()
            self._by_role.clear()
            self._recent.clear()


def _discard(index: dict, key, subscription: Subscription) -> None:
    bucket = index.get(key)
    if bucket is None:
        return
    bucket.discard(subscription)
    if not bucket:
        del index[key]
