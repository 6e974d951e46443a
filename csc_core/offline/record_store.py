# =============================================================================
# csc_core/offline/record_store.py
# Synchronizing record store - remote-truth reads, guaranteed-local writes
# =============================================================================
"""
RecordStore - the single persistence API for one entity type.

Reads prefer the remote store and refresh the local mirror with whatever it
returns; when the remote is unconfigured or failing, reads come from the
local mirror. Writes and deletes go to the remote on a best-effort basis and
then always to the local mirror.

A write made while the remote is unreachable stays local only. Nothing
replays it later, and nothing resolves conflicts between devices.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar
import logging

from csc_core.errors import LocalStoreError
from csc_core.models.entities import DEFAULT_SETTINGS, SETTINGS_KEY, CompanySettings
from csc_core.offline.local_store import LocalStore
from csc_core.offline.remote_store import RemoteStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _identity(record):
    return record


class RecordStore(Generic[T]):
    """
    CRUD contract for one entity table over the local and remote stores.

    Args:
        table: Canonical table name (also the backup sheet name)
        record_type: Dataclass with ``to_record()`` / ``from_record()``
        local: Local SQLite mirror
        remote: Remote Supabase store
        prepare: Hook applied to every record before it is written
    """

    def __init__(
        self,
        table: str,
        record_type: Type[T],
        local: LocalStore,
        remote: RemoteStore,
        prepare: Optional[Callable[[T], T]] = None,
    ):
        self.table = table
        self.record_type = record_type
        self._local = local
        self._remote = remote
        self._prepare = prepare or _identity

    def _to_records(self, rows: List[Dict[str, Any]]) -> List[T]:
        return [self.record_type.from_record(row) for row in rows]

    def _refresh_local(self, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            if not row.get("id"):
                continue
            try:
                self._local.put(self.table, row)
            except LocalStoreError as e:
                logger.error(f"Local refresh of {self.table} failed: {e}")
                return
        logger.debug(f"Refreshed {len(rows)} {self.table} records from remote")

    def all(self) -> List[T]:
        """
        Every record of this type. Never raises.

        Remote rows refresh the local mirror before they are returned; on
        remote failure the local mirror is returned instead.
        """
        result = self._remote.select_all(self.table)
        if result.ok:
            rows = result.data or []
            self._refresh_local(rows)
            return self._to_records(rows)

        try:
            return self._to_records(self._local.get_all(self.table))
        except Exception as e:
            logger.error(f"Local read of {self.table} failed: {e}")
            return []

    def get(self, record_id: str) -> Optional[T]:
        """One record by id, remote first, or None when absent."""
        result = self._remote.select_by_id(self.table, record_id)
        if result.ok:
            if result.data is None:
                return None
            self._refresh_local([result.data])
            return self.record_type.from_record(result.data)

        row = self._local.get_by_id(self.table, record_id)
        return self.record_type.from_record(row) if row else None

    def save(self, record: T) -> T:
        """
        Upsert a record: remote best-effort, then local.

        Returns:
            The record as written (after the prepare hook)

        Raises:
            LocalStoreError: if the local write fails
        """
        record = self._prepare(record)
        row = record.to_record()

        result = self._remote.upsert(self.table, row)
        if not result.ok and self._remote.is_configured:
            logger.warning(f"Remote save of {self.table}/{row.get('id')} skipped: {result.error}")

        self._local.put(self.table, row)
        return record

    def delete(self, record_id: str) -> None:
        """
        Delete by id: remote best-effort, then local. Missing ids are a no-op.

        Raises:
            LocalStoreError: if the local delete fails
        """
        result = self._remote.delete_by_id(self.table, record_id)
        if not result.ok and self._remote.is_configured:
            logger.warning(f"Remote delete of {self.table}/{record_id} skipped: {result.error}")

        self._local.delete_by_id(self.table, record_id)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], Any]:
        """Re-fetch trigger on remote row changes; no-op without a remote."""
        return self._remote.subscribe(self.table, callback)


class SettingsStore:
    """
    Company settings singleton stored under the fixed ``current_config`` key.

    ``get()`` falls back to the built-in defaults when no row exists yet.
    """

    def __init__(self, records: RecordStore[CompanySettings]):
        self._records = records

    @property
    def table(self) -> str:
        return self._records.table

    def get(self) -> CompanySettings:
        return self._records.get(SETTINGS_KEY) or replace(DEFAULT_SETTINGS)

    def exists(self) -> bool:
        return self._records.get(SETTINGS_KEY) is not None

    def save(self, settings: CompanySettings) -> CompanySettings:
        return self._records.save(settings)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], Any]:
        return self._records.subscribe(callback)
