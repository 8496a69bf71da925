"""Database connection and session management."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from core.logging_config import get_logger

LOGGER = get_logger(__name__)

# Tables that MUST exist for the server to start
REQUIRED_TABLES = ["settings", "roles", "permissions", "permissions_roles"]


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _create_engine(database_url: str, pool_size: int, max_overflow: int, pool_timeout: int) -> Engine:
    if not database_url.startswith("sqlite"):
        # PostgreSQL/MySQL with connection pooling
        return create_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,
        )

    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        Path(database_url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    return engine


class Database:
    """
    Engine and session factory for one installation.

    Constructed once at startup and carried on the application context.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
    ):
        self.url = database_url
        self.engine = _create_engine(database_url, pool_size, max_overflow, pool_timeout)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        Commits on success, rolls back on any exception.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def readonly_session(self) -> Generator[Session, None, None]:
        """Context manager for read-only database sessions."""
        session = self.session_factory()
        try:
            yield session
        finally:
            session.rollback()
            session.close()

    def check_connection(self) -> bool:
        """
        Verify database connectivity.

        Returns:
            True if connection successful, False otherwise.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            LOGGER.error("Database connection check failed: %s", exc)
            return False

    def missing_tables(self) -> List[str]:
        existing = set(inspect(self.engine).get_table_names())
        return [t for t in REQUIRED_TABLES if t not in existing]

    def init_db(self) -> dict:
        """
        Create any missing tables.

        Returns:
            Dict with initialization results.
        """
        # Import models to ensure they are registered with Base
        from core import models  # noqa: F401

        existing_tables = set(inspect(self.engine).get_table_names())
        Base.metadata.create_all(bind=self.engine)
        final_tables = set(inspect(self.engine).get_table_names())

        result = {
            "status": "success",
            "tables_created": sorted(final_tables - existing_tables),
            "tables_existing": sorted(existing_tables),
            "warnings": [],
        }
        missing_required = [t for t in REQUIRED_TABLES if t not in final_tables]
        if missing_required:
            result["warnings"].append(f"Missing required tables: {missing_required}")
            result["status"] = "warning"

        if result["tables_created"]:
            LOGGER.info("Created tables: %s", ", ".join(result["tables_created"]))
        return result

    def dispose(self) -> None:
        self.engine.dispose()
