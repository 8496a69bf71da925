"""Tests for installation identifier resolution and the first-run notification."""
from __future__ import annotations

import uuid

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from core.context import AppContext
from core.db import Database
from services.first_run import (
    DB_HASH_KEY,
    FIRST_RUN_NOTIFICATION_ID,
    first_run_message,
    resolve_db_hash,
)


def _first_run_notifications(ctx):
    return [n for n in ctx.notifications.browse() if n.id == FIRST_RUN_NOTIFICATION_ID]


def test_fresh_database_generates_hash(seeded_ctx):
    db_hash = resolve_db_hash(seeded_ctx)

    assert str(uuid.UUID(db_hash)) == db_hash
    assert seeded_ctx.db_hash == db_hash
    assert seeded_ctx.first_run is True
    assert seeded_ctx.settings_store.read(DB_HASH_KEY).value == db_hash
    assert seeded_ctx.settings_cache.read(DB_HASH_KEY) == db_hash


def test_fresh_database_adds_one_notification(seeded_ctx):
    resolve_db_hash(seeded_ctx)

    notifications = _first_run_notifications(seeded_ctx)
    assert len(notifications) == 1
    assert notifications[0].type == "info"
    assert notifications[0].status == "persistent"
    assert "http://localhost:2368" in notifications[0].message


def test_restart_reuses_hash_without_notification(seeded_ctx, settings):
    first = resolve_db_hash(seeded_ctx)

    restarted = AppContext.create(settings, database=Database(settings.database_url))
    try:
        second = resolve_db_hash(restarted)
    finally:
        restarted.database.dispose()

    assert second == first
    assert restarted.first_run is False
    assert len(restarted.notifications) == 0


def test_concurrent_creation_uses_stored_value(seeded_ctx, monkeypatch):
    seeded_ctx.settings_store.add(DB_HASH_KEY, "stored-elsewhere")
    store = seeded_ctx.settings_store
    real_read = store.read
    calls = []

    def read_missing_once(key):
        calls.append(key)
        if len(calls) == 1:
            from core.exceptions import NotFoundError
            raise NotFoundError(key)
        return real_read(key)

    monkeypatch.setattr(store, "read", read_missing_once)

    assert resolve_db_hash(seeded_ctx) == "stored-elsewhere"
    assert seeded_ctx.first_run is False
    assert _first_run_notifications(seeded_ctx) == []


def test_duplicate_insert_is_rejected(seeded_ctx):
    seeded_ctx.settings_store.add(DB_HASH_KEY, "one")
    with pytest.raises(IntegrityError):
        seeded_ctx.settings_store.add(DB_HASH_KEY, "two")


def test_storage_failure_propagates(seeded_ctx, monkeypatch):
    def broken_read(key):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(seeded_ctx.settings_store, "read", broken_read)

    with pytest.raises(OperationalError):
        resolve_db_hash(seeded_ctx)
    assert seeded_ctx.db_hash is None
    assert len(seeded_ctx.notifications) == 0


def test_first_run_message_mentions_environment_and_url():
    message = first_run_message("production", "https://blog.example.com")
    assert "<strong> production </strong>" in message
    assert "<strong>https://blog.example.com</strong>" in message
