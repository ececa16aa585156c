import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import uuid4

from ccswitch.apps.app_id import AppType, parse_app_type
from ccswitch.apps.common.utils import common_mcp_to_dto, dto_to_common_mcp
from ccswitch.errors import (
    DuplicateNameError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from ccswitch.models import Provider, ProviderPatch, validate_provider
from ccswitch.store.interface import IProviderStore
from ccswitch.utils import slugify, utc_now

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

# Columns added after the first release. Older databases gain them on open;
# nothing is ever dropped or renamed.
_ADDITIVE_COLUMNS: dict[str, list[tuple[str, str]]] = {
    "providers": [
        ("small_model", "TEXT"),
        ("mcp_servers_json", "TEXT NOT NULL DEFAULT '{}'"),
        ("metadata_json", "TEXT NOT NULL DEFAULT '{}'"),
        ("sort_index", "INTEGER NOT NULL DEFAULT 0"),
    ],
}

_PROVIDER_COLUMNS = (
    "id, app_type, name, api_key, base_url, model, small_model, "
    "mcp_servers_json, metadata_json, created_at, updated_at"
)


def _connect(db_path: Path) -> sqlite3.Connection:
    # isolation_level=None leaves transaction control to explicit BEGIN/COMMIT
    conn = sqlite3.connect(
        db_path, check_same_thread=False, isolation_level=None, timeout=30.0
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = FULL")
    conn.execute("PRAGMA busy_timeout = 30000")
    return conn


def generate_provider_id(name: str) -> str:
    return f"{slugify(name)}-{uuid4().hex[:8]}"


class SQLiteProviderStore(IProviderStore):
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = _connect(self._db_path)
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"Cannot open provider store {db_path}: {exc}") from exc
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise StoreError(f"Cannot start transaction: {exc}") from exc
            try:
                yield self._conn
            except sqlite3.Error as exc:
                self._conn.execute("ROLLBACK")
                raise StoreError(str(exc)) from exc
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                try:
                    self._conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    self._conn.execute("ROLLBACK")
                    raise StoreError(f"Commit failed: {exc}") from exc

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS providers (
                    id TEXT PRIMARY KEY,
                    app_type TEXT NOT NULL,
                    name TEXT NOT NULL,
                    api_key TEXT NOT NULL,
                    base_url TEXT NOT NULL,
                    model TEXT,
                    small_model TEXT,
                    mcp_servers_json TEXT NOT NULL DEFAULT '{}',
                    metadata_json TEXT NOT NULL DEFAULT '{}',
                    sort_index INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (app_type, name)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS current_providers (
                    app_type TEXT PRIMARY KEY,
                    provider_id TEXT NOT NULL
                        REFERENCES providers(id) ON DELETE CASCADE
                )
                """
            )

            for table, columns in _ADDITIVE_COLUMNS.items():
                existing = {
                    row["name"] for row in conn.execute(f"PRAGMA table_info({table})")
                }
                for column, ddl in columns:
                    if column not in existing:
                        logger.info("Migrating store: adding %s.%s", table, column)
                        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_providers_app_order "
                "ON providers(app_type, sort_index)"
            )
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version < SCHEMA_VERSION:
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def create(self, provider: Provider) -> Provider:
        validate_provider(provider)
        # Imported providers carry their original timestamps.
        created_at = provider.created_at or utc_now()
        created = replace(
            provider,
            id=provider.id or generate_provider_id(provider.name),
            created_at=created_at,
            updated_at=provider.updated_at or created_at,
        )
        with self._transaction() as conn:
            if self._select_by_name(conn, created.app_type, created.name) is not None:
                raise DuplicateNameError(created.app_type.value, created.name)
            if self._select_by_id(conn, created.id) is not None:
                raise ValidationError(f"Provider id already exists: {created.id}")
            sort_index = conn.execute(
                "SELECT COALESCE(MAX(sort_index), 0) + 1 FROM providers"
            ).fetchone()[0]
            conn.execute(
                f"""
                INSERT INTO providers ({_PROVIDER_COLUMNS}, sort_index)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (*self._provider_params(created), sort_index),
            )
        logger.info(
            "Created %s provider %s (%s)",
            created.app_type.value,
            created.name,
            created.id,
        )
        return created

    def get(self, provider_id: str) -> Provider:
        with self._reading() as conn:
            row = self._select_by_id(conn, provider_id)
        if row is None:
            raise NotFoundError("Provider", provider_id)
        return self._row_to_provider(row)

    def find_by_name(self, app_type: AppType, name: str) -> Provider:
        with self._reading() as conn:
            row = self._select_by_name(conn, app_type, name)
        if row is None:
            raise NotFoundError(f"{app_type.value} provider", name)
        return self._row_to_provider(row)

    def update(self, provider_id: str, patch: ProviderPatch) -> Provider:
        with self._transaction() as conn:
            row = self._select_by_id(conn, provider_id)
            if row is None:
                raise NotFoundError("Provider", provider_id)
            current = self._row_to_provider(row)
            updated = patch.apply(current)
            if updated.name != current.name:
                clash = self._select_by_name(conn, updated.app_type, updated.name)
                if clash is not None:
                    raise DuplicateNameError(updated.app_type.value, updated.name)
            updated = replace(updated, updated_at=_next_timestamp(current.updated_at))
            conn.execute(
                """
                UPDATE providers
                SET name = ?, api_key = ?, base_url = ?, model = ?, small_model = ?,
                    mcp_servers_json = ?, metadata_json = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    updated.name,
                    updated.api_key,
                    updated.base_url,
                    updated.model,
                    updated.small_model,
                    _dump_json_column(dto_to_common_mcp(updated.mcp_servers)),
                    _dump_json_column(updated.metadata),
                    _dump_timestamp(updated.updated_at),
                    provider_id,
                ),
            )
        logger.info(
            "Updated %s provider %s (%s): %s",
            updated.app_type.value,
            updated.name,
            provider_id,
            ", ".join(sorted(patch.changes())) or "no fields",
        )
        return updated

    def delete(self, provider_id: str) -> Provider:
        with self._transaction() as conn:
            row = self._select_by_id(conn, provider_id)
            if row is None:
                raise NotFoundError("Provider", provider_id)
            conn.execute(
                "DELETE FROM current_providers WHERE provider_id = ?", (provider_id,)
            )
            conn.execute("DELETE FROM providers WHERE id = ?", (provider_id,))
        deleted = self._row_to_provider(row)
        logger.info(
            "Deleted %s provider %s (%s)",
            deleted.app_type.value,
            deleted.name,
            provider_id,
        )
        return deleted

    def list(self, app_type: AppType | None = None) -> list[Provider]:
        query = f"SELECT {_PROVIDER_COLUMNS} FROM providers"
        params: tuple[Any, ...] = ()
        if app_type is not None:
            query += " WHERE app_type = ?"
            params = (app_type.value,)
        query += " ORDER BY sort_index, rowid"
        with self._reading() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_provider(row) for row in rows]

    def get_current(self, app_type: AppType) -> str | None:
        with self._reading() as conn:
            row = conn.execute(
                "SELECT provider_id FROM current_providers WHERE app_type = ?",
                (app_type.value,),
            ).fetchone()
        return row["provider_id"] if row is not None else None

    def set_current(self, app_type: AppType, provider_id: str) -> None:
        with self._transaction() as conn:
            row = self._select_by_id(conn, provider_id)
            if row is None or row["app_type"] != app_type.value:
                raise NotFoundError(f"{app_type.value} provider", provider_id)
            conn.execute(
                """
                INSERT INTO current_providers (app_type, provider_id) VALUES (?, ?)
                ON CONFLICT(app_type) DO UPDATE SET provider_id = excluded.provider_id
                """,
                (app_type.value, provider_id),
            )
        logger.info("Current %s provider is now %s", app_type.value, provider_id)

    def clear_current(self, app_type: AppType) -> None:
        with self._transaction() as conn:
            conn.execute(
                "DELETE FROM current_providers WHERE app_type = ?", (app_type.value,)
            )

    def exists(self, provider_id: str) -> bool:
        with self._reading() as conn:
            return self._select_by_id(conn, provider_id) is not None

    def count(self, app_type: AppType | None = None) -> int:
        query = "SELECT COUNT(*) FROM providers"
        params: tuple[Any, ...] = ()
        if app_type is not None:
            query += " WHERE app_type = ?"
            params = (app_type.value,)
        with self._reading() as conn:
            return int(conn.execute(query, params).fetchone()[0])

    @staticmethod
    def _select_by_id(conn: sqlite3.Connection, provider_id: str) -> sqlite3.Row | None:
        return conn.execute(
            f"SELECT {_PROVIDER_COLUMNS} FROM providers WHERE id = ?", (provider_id,)
        ).fetchone()

    @staticmethod
    def _select_by_name(
        conn: sqlite3.Connection, app_type: AppType, name: str
    ) -> sqlite3.Row | None:
        return conn.execute(
            f"SELECT {_PROVIDER_COLUMNS} FROM providers "
            "WHERE app_type = ? AND name = ?",
            (app_type.value, name),
        ).fetchone()

    @staticmethod
    def _provider_params(provider: Provider) -> tuple[Any, ...]:
        return (
            provider.id,
            provider.app_type.value,
            provider.name,
            provider.api_key,
            provider.base_url,
            provider.model,
            provider.small_model,
            _dump_json_column(dto_to_common_mcp(provider.mcp_servers)),
            _dump_json_column(provider.metadata),
            _dump_timestamp(provider.created_at),
            _dump_timestamp(provider.updated_at),
        )

    @staticmethod
    def _row_to_provider(row: sqlite3.Row) -> Provider:
        mcp_raw = _load_json_column(row["mcp_servers_json"])
        metadata = _load_json_column(row["metadata_json"])
        return Provider(
            id=row["id"],
            app_type=parse_app_type(row["app_type"]),
            name=row["name"],
            api_key=row["api_key"],
            base_url=row["base_url"],
            model=row["model"],
            small_model=row["small_model"],
            mcp_servers=common_mcp_to_dto(mcp_raw),
            metadata=metadata,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def _next_timestamp(previous: datetime | None) -> datetime:
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _dump_timestamp(value: datetime | None) -> str:
    return (value or utc_now()).isoformat()


def _dump_json_column(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Value is not JSON serializable: {exc}") from exc


def _load_json_column(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise StoreError(f"Corrupt JSON column in provider store: {exc}") from exc
    return payload if isinstance(payload, dict) else {}
