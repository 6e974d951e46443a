# =============================================================================
# csc_core/offline/local_store.py
# Local SQLite mirror of the entity tables
# =============================================================================
"""
LocalStore - SQLite-backed key/value storage, one table per entity type.

Features:
- Schema provisioning on first open, stamped with a schema version
- Records stored whole as JSON, keyed by their ``id``
- Writes serialized per table
- Scalar app settings (e.g. the session pointer) outside the entity tables
- Degrades to empty reads and no-op writes when the engine cannot be opened
"""

from __future__ import annotations
import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from csc_core.errors import LocalStoreError

logger = logging.getLogger(__name__)

ENTITY_TABLES = ("users", "customers", "services", "jobs", "inventory", "settings")

ENTITY_TABLE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS {table} (
        id TEXT PRIMARY KEY,
        data_json TEXT NOT NULL,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

SETTINGS_TABLE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""


class LocalStore:
    """
    Local SQLite database holding the offline copy of every entity table.

    Usage:
        store = LocalStore(Path("local_data/csc_erp.db"))
        store.open_or_create(schema_version=1)
        store.put("customers", {"id": "c1", "name": "Asha"})
        store.get_all("customers")
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        tables: Iterable[str] = ENTITY_TABLES,
    ):
        """
        Args:
            db_path: Path to SQLite database file
            tables: Entity tables to provision
        """
        self.db_path = Path(db_path)
        self.tables = tuple(tables)
        self.schema_version: Optional[int] = None
        self._local = threading.local()
        self._table_locks = {table: threading.Lock() for table in self.tables}
        self._settings_lock = threading.Lock()
        self._initialized = False
        self._available = False

    @property
    def available(self) -> bool:
        """False when the engine could not be opened; reads are then empty."""
        return self._available

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def open_or_create(self, schema_version: int = 1) -> LocalStore:
        """
        Provision every entity table and stamp the schema version.

        If the engine cannot be opened (unwritable path, unsupported
        environment) the store stays unavailable instead of raising.
        """
        if self._initialized:
            return self

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self.transaction() as conn:
                for table in self.tables:
                    conn.execute(ENTITY_TABLE_SCHEMA.format(table=table))
                    logger.debug(f"Created/verified table: {table}")
                conn.execute(SETTINGS_TABLE_SCHEMA)
                conn.execute(f"PRAGMA user_version = {int(schema_version)}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Local store unavailable at {self.db_path}: {e}")
            self._available = False
        else:
            self._available = True
            self.schema_version = int(schema_version)
            logger.info(f"Local store initialized at: {self.db_path} (schema v{schema_version})")

        self._initialized = True
        return self

    def _check_table(self, table: str) -> None:
        if table not in self._table_locks:
            raise ValueError(f"Unknown entity table: {table}")

    # =========================================================================
    # ENTITY OPERATIONS
    # =========================================================================

    def get_all(self, table: str) -> List[Dict[str, Any]]:
        """Return every record of a table; empty when the engine is unavailable."""
        self._check_table(table)
        if not self._available:
            return []

        try:
            rows = self._get_connection().execute(
                f"SELECT data_json FROM {table} ORDER BY rowid"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error reading local table {table}: {e}")
            return []

        return [json.loads(row["data_json"]) for row in rows]

    def get_by_id(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a record by id, or None when absent."""
        self._check_table(table)
        if not self._available:
            return None

        try:
            row = self._get_connection().execute(
                f"SELECT data_json FROM {table} WHERE id = ?",
                [record_id],
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading {record_id} from local table {table}: {e}")
            return None

        return json.loads(row["data_json"]) if row else None

    def put(self, table: str, record: Dict[str, Any]) -> None:
        """
        Insert or replace a record keyed by its ``id``.

        Raises:
            LocalStoreError: if the write fails on an open engine
        """
        self._check_table(table)
        record_id = record.get("id")
        if not record_id:
            raise LocalStoreError("Record has no id", table=table)

        if not self._available:
            logger.warning(f"Local store unavailable, dropped write {table}/{record_id}")
            return

        with self._table_locks[table]:
            try:
                with self.transaction() as conn:
                    conn.execute(
                        f"""
                        INSERT OR REPLACE INTO {table} (id, data_json, updated_at)
                        VALUES (?, ?, ?)
                        """,
                        [str(record_id), json.dumps(record), datetime.now().isoformat()],
                    )
            except (sqlite3.Error, TypeError, ValueError) as e:
                raise LocalStoreError(
                    f"Failed to write local record: {e}",
                    table=table,
                    record_id=str(record_id),
                ) from e

    def delete_by_id(self, table: str, record_id: str) -> None:
        """
        Delete a record. Deleting a missing id is a no-op.

        Raises:
            LocalStoreError: if the delete fails on an open engine
        """
        self._check_table(table)
        if not self._available:
            logger.warning(f"Local store unavailable, dropped delete {table}/{record_id}")
            return

        with self._table_locks[table]:
            try:
                with self.transaction() as conn:
                    conn.execute(f"DELETE FROM {table} WHERE id = ?", [record_id])
            except sqlite3.Error as e:
                raise LocalStoreError(
                    f"Failed to delete local record: {e}",
                    table=table,
                    record_id=record_id,
                ) from e

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get an app setting."""
        if not self._available:
            return default

        try:
            row = self._get_connection().execute(
                "SELECT value FROM app_settings WHERE key = ?",
                [key],
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading setting {key}: {e}")
            return default

        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            return row["value"]

    def set_setting(self, key: str, value: Any) -> None:
        """Set an app setting; ``None`` removes it."""
        if not self._available:
            logger.warning(f"Local store unavailable, setting {key} not persisted")
            return

        with self._settings_lock:
            try:
                with self.transaction() as conn:
                    if value is None:
                        conn.execute("DELETE FROM app_settings WHERE key = ?", [key])
                    else:
                        conn.execute(
                            """
                            INSERT OR REPLACE INTO app_settings (key, value, updated_at)
                            VALUES (?, ?, ?)
                            """,
                            [key, json.dumps(value), datetime.now().isoformat()],
                        )
            except sqlite3.Error as e:
                raise LocalStoreError(f"Failed to write setting {key}: {e}") from e

    def close(self) -> None:
        """Close this thread's database connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
