"""Migration environment for the Inkwell schema.

The target database comes from the same settings the server uses, so
``alembic upgrade head`` migrates whatever ``DATABASE_URL``/``ENVIRONMENT``
point at. ``src`` is put on the path by ``prepend_sys_path`` in alembic.ini.
"""
from __future__ import annotations

from logging.config import fileConfig

from alembic import context

from core import models  # noqa: F401  (registers the tables on Base.metadata)
from core.config import get_settings
from core.db import Base, Database

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name, disable_existing_loggers=False)


def _migration_options(database_url: str) -> dict:
    # SQLite can only ALTER through table copies
    return {
        "target_metadata": Base.metadata,
        "render_as_batch": database_url.startswith("sqlite"),
    }


def migrate_offline(database_url: str) -> None:
    """Emit SQL to stdout instead of touching the database."""
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_migration_options(database_url),
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_online(database_url: str) -> None:
    database = Database.from_settings(get_settings())
    try:
        with database.engine.connect() as connection:
            context.configure(connection=connection, **_migration_options(database_url))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        database.dispose()


_url = get_settings().database_url
if context.is_offline_mode():
    migrate_offline(_url)
else:
    migrate_online(_url)
