"""
extensions.py - Flask extension singletons.

Initialises SQLAlchemy and the notification hub as module-level objects so
they can be imported anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` or `notification_hub` from here wherever needed.

    from collabhub.app.extensions import db, notification_hub

Do not pass the app object directly to SQLAlchemy() at import time - that
would prevent running tests with a separate test app instance.
"""

from flask_sqlalchemy import SQLAlchemy

from collabhub.app.services.notification_hub import NotificationHub

db = SQLAlchemy()

# Process-wide pub/sub for Server-Sent Events. One instance per process;
# events and live connections are never shared across processes.
notification_hub = NotificationHub()
