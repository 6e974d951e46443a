# =============================================================================
# csc_core/offline/remote_store.py
# Supabase table access with unavailable/failure results instead of raises
# =============================================================================
"""
RemoteStore - the hosted relational backend, seen as per-table operations.

Every call returns a RemoteResult. Network and backend errors are caught and
reported as ``ok=False`` so the record stores can fall back to the local
mirror. Without credentials the store is permanently unconfigured and never
touches the network.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import logging

from csc_core.offline.change_relay import ChangeRelay, ClientFactory
from csc_core.offline.connection_monitor import ConnectionMonitor

logger = logging.getLogger(__name__)


@dataclass
class RemoteResult:
    """
    Outcome of a remote call.

    ``ok`` is False when the backend is unconfigured, unreachable or returned
    an error; ``data`` carries rows for reads (None for an absent record).
    """
    ok: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, data: Any = None) -> RemoteResult:
        return cls(ok=True, data=data)

    @classmethod
    def unavailable(cls, error: str = "remote store not configured") -> RemoteResult:
        return cls(ok=False, error=error)


def _noop_unsubscribe() -> None:
    return None


class RemoteStore:
    """
    Generic Supabase CRUD over named tables.

    Usage:
        remote = RemoteStore(url, key)
        result = remote.select_all("customers")
        if result:
            rows = result.data
    """

    PAGE_SIZE = 1000  # Supabase returns at most 1000 rows per request

    def __init__(
        self,
        url: str = "",
        key: str = "",
        client: Any = None,
        monitor: Optional[ConnectionMonitor] = None,
        relay: Optional[ChangeRelay] = None,
        realtime_client_factory: Optional[ClientFactory] = None,
    ):
        """
        Args:
            url: Supabase project URL
            key: Supabase anon/service key
            client: Pre-built client (tests); skips lazy creation
            monitor: Connectivity tracker fed with call outcomes
            relay: Change relay for subscriptions (built lazily otherwise)
            realtime_client_factory: Async client factory for the relay
        """
        self.url = url or ""
        self.key = key or ""
        self._client = client
        self._client_error: Optional[str] = None
        self._monitor = monitor or ConnectionMonitor(configured=self.is_configured)
        self._relay = relay
        self._realtime_client_factory = realtime_client_factory

    @property
    def is_configured(self) -> bool:
        return self._client is not None or (bool(self.url) and bool(self.key))

    @property
    def monitor(self) -> ConnectionMonitor:
        return self._monitor

    def _get_client(self):
        """Lazy load the Supabase client."""
        if self._client is None and self._client_error is None and self.is_configured:
            try:
                from supabase import create_client

                self._client = create_client(self.url, self.key)
                logger.info("Supabase client created")
            except Exception as e:
                # A bad URL or key is a misconfiguration, not a crash
                self._client_error = str(e)
                logger.error(f"Supabase client not available: {e}")
        return self._client

    def _run(self, table: str, operation: str, call: Callable[[Any], Any]) -> RemoteResult:
        if not self.is_configured:
            return RemoteResult.unavailable()

        client = self._get_client()
        if client is None:
            return RemoteResult.unavailable(self._client_error or "client unavailable")

        try:
            data = call(client)
        except Exception as e:
            logger.warning(f"Remote {operation} on {table} failed: {e}")
            self._monitor.record_failure(str(e))
            return RemoteResult(ok=False, error=str(e))

        self._monitor.record_success()
        return RemoteResult.success(data)

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def select_all(self, table: str) -> RemoteResult:
        """Fetch ALL rows of a table, paging past the 1000 row limit.

        Pages are ordered by id so consecutive ranges neither overlap nor skip.
        """
        def fetch(client) -> List[Dict[str, Any]]:
            rows: List[Dict[str, Any]] = []
            offset = 0
            while True:
                response = (
                    client.table(table)
                    .select("*")
                    .order("id")
                    .range(offset, offset + self.PAGE_SIZE - 1)
                    .execute()
                )
                batch = response.data or []
                rows.extend(batch)
                if len(batch) < self.PAGE_SIZE:
                    break
                offset += self.PAGE_SIZE
            return rows

        return self._run(table, "select", fetch)

    def select_by_id(self, table: str, record_id: str) -> RemoteResult:
        """Fetch one row; ``data`` is None when the id does not exist."""
        def fetch(client) -> Optional[Dict[str, Any]]:
            response = (
                client.table(table)
                .select("*")
                .eq("id", record_id)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        return self._run(table, "select_by_id", fetch)

    def upsert(self, table: str, record: Dict[str, Any]) -> RemoteResult:
        """Insert or update a row keyed by ``id``."""
        def write(client) -> None:
            client.table(table).upsert(record).execute()

        return self._run(table, "upsert", write)

    def delete_by_id(self, table: str, record_id: str) -> RemoteResult:
        """Delete a row; a missing id is not an error."""
        def remove(client) -> None:
            client.table(table).delete().eq("id", record_id).execute()

        return self._run(table, "delete", remove)

    # =========================================================================
    # CHANGE FEED
    # =========================================================================

    def subscribe(self, table: str, on_change: Callable[[], None]) -> Callable[[], Any]:
        """
        Listen for row changes on ``table``.

        Returns an idempotent unsubscribe callable; a no-op when unconfigured.
        """
        if not (self.url and self.key):
            return _noop_unsubscribe

        if self._relay is None:
            self._relay = ChangeRelay(
                self.url, self.key, client_factory=self._realtime_client_factory
            )
        return self._relay.subscribe(table, on_change)

    def close(self) -> None:
        if self._relay is not None:
            self._relay.close()
