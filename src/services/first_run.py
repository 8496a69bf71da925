"""Installation identifier (dbHash) and first-run bootstrapping."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import IntegrityError

from core.exceptions import NotFoundError
from core.logging_config import get_logger
from core.models import SettingType
from core.utils import generate_unique_key
from services.notifications import Notification

if TYPE_CHECKING:
    from core.context import AppContext

LOGGER = get_logger(__name__)

DB_HASH_KEY = "dbHash"
FIRST_RUN_NOTIFICATION_ID = "inkwell-first-run"
DOCS_URL = "https://inkwell.readthedocs.io/"


def first_run_message(environment: str, url: str) -> str:
    """HTML welcome message shown once to the first administrator."""
    return " ".join([
        "Welcome to Inkwell.",
        "You're running under the <strong>",
        environment,
        "</strong>environment.",
        "Your URL is set to",
        f"<strong>{url}</strong>.",
        f'See <a href="{DOCS_URL}">{DOCS_URL}</a> for instructions.',
    ])


def do_first_run(ctx: "AppContext") -> Notification:
    """Add the one-off welcome notification."""
    return ctx.notifications.add(
        message=first_run_message(ctx.environment, ctx.settings.url),
        type="info",
        status="persistent",
        id=FIRST_RUN_NOTIFICATION_ID,
        html=True,
    )


def resolve_db_hash(ctx: "AppContext") -> str:
    """
    Read the installation identifier, creating it on first run.

    Only a missing row counts as a first run. Any other storage failure
    propagates so that it cannot silently mint a new identifier.

    Returns:
        The dbHash, also stored on ``ctx.db_hash``.
    """
    try:
        ctx.db_hash = ctx.settings_store.read(DB_HASH_KEY).value
        ctx.first_run = False
        LOGGER.debug("Existing dbHash found")
        return ctx.db_hash
    except NotFoundError:
        pass

    candidate = generate_unique_key()
    try:
        ctx.settings_store.add(DB_HASH_KEY, candidate, SettingType.CORE.value)
    except IntegrityError:
        # Another process inserted the row between our read and write
        existing: Optional[str] = ctx.settings_store.read(DB_HASH_KEY).value
        LOGGER.warning("dbHash was created concurrently; using the stored value")
        ctx.db_hash = existing
        ctx.first_run = False
        return existing

    ctx.db_hash = candidate
    ctx.first_run = True
    ctx.settings_cache.remember(DB_HASH_KEY, candidate, SettingType.CORE.value)
    do_first_run(ctx)
    LOGGER.info("First run detected; generated a new dbHash")
    return candidate


__all__ = [
    "DB_HASH_KEY",
    "FIRST_RUN_NOTIFICATION_ID",
    "first_run_message",
    "do_first_run",
    "resolve_db_hash",
]
