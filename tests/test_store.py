import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ccswitch.apps.app_id import AppType
from ccswitch.errors import DuplicateNameError, NotFoundError, ValidationError
from ccswitch.models import ProviderPatch
from ccswitch.store.sqlite import SCHEMA_VERSION, SQLiteProviderStore


def test_create_assigns_id_and_timestamps(store, make_provider) -> None:
    created = store.create(make_provider(name="Fast API"))

    assert created.id.startswith("fast-api-")
    assert created.created_at is not None
    assert created.created_at == created.updated_at
    assert store.get(created.id) == created


def test_create_keeps_caller_supplied_id(store, make_provider) -> None:
    created = store.create(make_provider(id="team-relay"))

    assert created.id == "team-relay"
    with pytest.raises(ValidationError, match="id already exists"):
        store.create(make_provider(id="team-relay", name="other"))


def test_create_keeps_supplied_timestamps(store, make_provider) -> None:
    created_at = datetime(2025, 3, 1, 8, 30, tzinfo=timezone.utc)
    updated_at = datetime(2025, 4, 2, 9, 45, tzinfo=timezone.utc)

    created = store.create(
        make_provider(created_at=created_at, updated_at=updated_at)
    )
    only_created = store.create(make_provider(name="other", created_at=created_at))

    assert store.get(created.id).created_at == created_at
    assert store.get(created.id).updated_at == updated_at
    assert only_created.updated_at == created_at


def test_names_are_unique_per_app_only(store, make_provider) -> None:
    store.create(make_provider(AppType.CLAUDE, "shared"))
    store.create(make_provider(AppType.CODEX, "shared"))

    with pytest.raises(DuplicateNameError):
        store.create(make_provider(AppType.CLAUDE, "shared"))
    assert store.count() == 2


def test_list_keeps_insertion_order(store, make_provider) -> None:
    for name in ("zeta", "alpha", "mid"):
        store.create(make_provider(name=name))
    store.create(make_provider(AppType.GEMINI, "other"))

    assert [item.name for item in store.list(AppType.CLAUDE)] == [
        "zeta",
        "alpha",
        "mid",
    ]
    assert [item.name for item in store.list()] == ["zeta", "alpha", "mid", "other"]


def test_update_applies_patch_and_advances_updated_at(store, make_provider) -> None:
    created = store.create(make_provider(model="opus"))

    first = store.update(created.id, ProviderPatch(model=None))
    second = store.update(created.id, ProviderPatch(name="renamed"))

    assert first.model is None
    assert second.name == "renamed"
    assert created.updated_at < first.updated_at < second.updated_at
    assert store.get(created.id).created_at == created.created_at


def test_update_rejects_rename_onto_existing_name(store, make_provider) -> None:
    store.create(make_provider(name="a"))
    b = store.create(make_provider(name="b"))

    with pytest.raises(DuplicateNameError):
        store.update(b.id, ProviderPatch(name="a"))
    assert store.get(b.id).name == "b"


def test_update_of_missing_provider_raises(store) -> None:
    with pytest.raises(NotFoundError):
        store.update("missing", ProviderPatch(name="x"))


def test_delete_clears_current_pointer(store, make_provider) -> None:
    created = store.create(make_provider())
    store.set_current(AppType.CLAUDE, created.id)

    deleted = store.delete(created.id)

    assert deleted.id == created.id
    assert store.get_current(AppType.CLAUDE) is None
    assert not store.exists(created.id)
    with pytest.raises(NotFoundError):
        store.delete(created.id)


def test_set_current_requires_provider_of_that_app(store, make_provider) -> None:
    codex = store.create(make_provider(AppType.CODEX))

    with pytest.raises(NotFoundError):
        store.set_current(AppType.CLAUDE, codex.id)
    with pytest.raises(NotFoundError):
        store.set_current(AppType.CODEX, "missing")

    store.set_current(AppType.CODEX, codex.id)
    assert store.current_provider(AppType.CODEX) == codex
    store.clear_current(AppType.CODEX)
    assert store.current_provider(AppType.CODEX) is None


def test_resolve_by_id_name_casefold_and_unique_prefix(store, make_provider) -> None:
    fast = store.create(make_provider(name="Fast-API"))
    store.create(make_provider(name="fallback"))
    store.create(make_provider(name="slow"))

    assert store.resolve(AppType.CLAUDE, fast.id) == fast
    assert store.resolve(AppType.CLAUDE, "Fast-API") == fast
    assert store.resolve(AppType.CLAUDE, "fast-api") == fast
    assert store.resolve(AppType.CLAUDE, "fas").name == "Fast-API"
    assert store.resolve(AppType.CLAUDE, "sl").name == "slow"
    with pytest.raises(ValidationError, match="ambiguous"):
        store.resolve(AppType.CLAUDE, "f")
    with pytest.raises(NotFoundError):
        store.resolve(AppType.GEMINI, "Fast-API")


def test_store_persists_across_reopen(settings, make_provider) -> None:
    first = SQLiteProviderStore(settings.db_path)
    created = first.create(make_provider())
    first.set_current(AppType.CLAUDE, created.id)
    first.close()

    reopened = SQLiteProviderStore(settings.db_path)
    try:
        assert reopened.get_current(AppType.CLAUDE) == created.id
        assert reopened.get(created.id).api_key == created.api_key
    finally:
        reopened.close()


def test_legacy_database_gains_new_columns(tmp_path: Path) -> None:
    db_path = tmp_path / "legacy.db"
    conn = sqlite3.connect(db_path)
    conn.executescript(
        """
        CREATE TABLE providers (
            id TEXT PRIMARY KEY,
            app_type TEXT NOT NULL,
            name TEXT NOT NULL,
            api_key TEXT NOT NULL,
            base_url TEXT NOT NULL,
            model TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (app_type, name)
        );
        INSERT INTO providers VALUES (
            'old-1', 'claude', 'old', 'key-1', 'https://old.example.com', 'opus',
            '2025-01-01T00:00:00+00:00', '2025-01-01T00:00:00+00:00'
        );
        """
    )
    conn.commit()
    conn.close()

    store = SQLiteProviderStore(db_path)
    try:
        provider = store.get("old-1")
        assert provider.model == "opus"
        assert provider.small_model is None
        assert provider.mcp_servers == {}
        assert provider.metadata == {}
    finally:
        store.close()

    conn = sqlite3.connect(db_path)
    try:
        assert conn.execute("PRAGMA user_version").fetchone()[0] == SCHEMA_VERSION
    finally:
        conn.close()
