"""
collabhub/migrations/env.py - Alembic environment.

The database URL and the model metadata both come from the Flask app, so
`alembic upgrade head` migrates whatever database the app itself would use:
FLASK_ENV picks the config class (development by default), and that class
reads DATABASE_URL / TEST_DATABASE_URL from the environment or .env.

    FLASK_ENV=production alembic upgrade head
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context

from collabhub.app import create_app
from collabhub.app.extensions import db

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

flask_app = create_app(os.getenv("FLASK_ENV", "development"))
database_url = flask_app.config["SQLALCHEMY_DATABASE_URI"]

# Every model module is imported by create_app(), so the metadata is complete.
target_metadata = db.metadata


def _offline() -> None:
    """Emit SQL to stdout instead of connecting (alembic upgrade --sql)."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _online() -> None:
    with flask_app.app_context():
        engine = db.engine
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                # SQLite cannot ALTER constraints in place.
                render_as_batch=connection.dialect.name == "sqlite",
            )
            with context.begin_transaction():
                context.run_migrations()


if context.is_offline_mode():
    _offline()
else:
    _online()
