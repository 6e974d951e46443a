# =============================================================================
# csc_core/offline/change_relay.py
# Realtime row-change notifications from the remote store
# =============================================================================
"""
ChangeRelay - forwards Supabase realtime ``postgres_changes`` events.

The record path is synchronous, but the realtime client is asyncio-only, so
the relay owns a background thread running an event loop. Each subscription
opens one channel ``public:<table>`` listening for every insert, update and
delete, and invokes the caller's callback with no payload. Consumers re-fetch
the collection themselves.

Callbacks run on the relay thread.
"""

from __future__ import annotations
import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, List, Optional
import logging

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], Awaitable[Any]]


async def create_realtime_client(url: str, key: str):
    """Default factory: the async Supabase client, which carries realtime."""
    from supabase import acreate_client

    return await acreate_client(url, key)


class Subscription:
    """
    Handle for one table subscription.

    Calling the handle (or ``close()``) unsubscribes; repeated calls are
    no-ops.
    """

    def __init__(self, relay: ChangeRelay, table: str):
        self.table = table
        self.ready: Optional[Future] = None
        self._relay = relay
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> Optional[Future]:
        with self._lock:
            if self._closed:
                return None
            self._closed = True
        return self._relay._release(self)

    def __call__(self) -> Optional[Future]:
        return self.close()


class ChangeRelay:
    """
    Per-table realtime subscriptions over a lazily created async client.

    Usage:
        relay = ChangeRelay(url, key)
        unsubscribe = relay.subscribe("jobs", refresh_jobs)
        ...
        unsubscribe()
        relay.close()
    """

    SHUTDOWN_TIMEOUT = 5  # Seconds to wait for channels and thread on close()

    def __init__(
        self,
        url: str,
        key: str,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.url = url
        self.key = key
        self._client_factory = client_factory or create_realtime_client
        self._client = None
        self._client_lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []

    @property
    def active_subscriptions(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # =========================================================================
    # EVENT LOOP THREAD
    # =========================================================================

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._run_loop,
                    daemon=True,
                    name="ChangeRelay",
                )
                self._thread.start()
                logger.debug("Change relay loop started")
            return self._loop

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _get_client(self):
        if self._client_lock is None:
            self._client_lock = asyncio.Lock()
        async with self._client_lock:
            if self._client is None:
                self._client = await self._client_factory(self.url, self.key)
        return self._client

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, table: str, on_change: Callable[[], None]) -> Subscription:
        """
        Start listening for row changes on ``table``.

        The channel opens in the background; ``subscription.ready`` resolves
        once it is joined. Failures are logged, never raised.
        """
        loop = self._ensure_loop()
        subscription = Subscription(self, table)
        subscription.ready = asyncio.run_coroutine_threadsafe(
            self._open_channel(table, on_change), loop
        )
        subscription.ready.add_done_callback(
            lambda fut: self._log_open_result(table, fut)
        )
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    async def _open_channel(self, table: str, on_change: Callable[[], None]):
        client = await self._get_client()

        def handle(payload: Any) -> None:
            logger.debug(f"Real-time update received for table: {table}")
            try:
                on_change()
            except Exception as e:
                logger.error(f"Error in change callback for {table}: {e}")

        channel = client.channel(f"public:{table}")
        channel.on_postgres_changes("*", schema="public", table=table, callback=handle)
        await channel.subscribe()
        logger.info(f"Subscribed to realtime changes on {table}")
        return channel

    @staticmethod
    def _log_open_result(table: str, fut: Future) -> None:
        if fut.cancelled():
            return
        error = fut.exception()
        if error is not None:
            logger.warning(f"Realtime subscription to {table} failed: {error}")

    def _release(self, subscription: Subscription) -> Optional[Future]:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        if self._loop is None or subscription.ready is None:
            return None
        return asyncio.run_coroutine_threadsafe(
            self._close_channel(subscription), self._loop
        )

    async def _close_channel(self, subscription: Subscription) -> None:
        try:
            channel = await asyncio.wrap_future(subscription.ready)
        except Exception:
            # Never opened, nothing to remove
            return
        try:
            client = await self._get_client()
            await client.remove_channel(channel)
            logger.info(f"Unsubscribed from realtime changes on {subscription.table}")
        except Exception as e:
            logger.warning(f"Error closing realtime channel for {subscription.table}: {e}")

    def close(self) -> None:
        """Remove every channel and stop the loop thread."""
        with self._lock:
            subscriptions = list(self._subscriptions)
        pending = [s.close() for s in subscriptions]
        for fut in pending:
            if fut is None:
                continue
            try:
                fut.result(timeout=self.SHUTDOWN_TIMEOUT)
            except Exception as e:
                logger.warning(f"Realtime channel did not close cleanly: {e}")
        with self._lock:
            self._subscriptions.clear()
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is not None:
            loop.call_soon_threadsafe(loop.stop)
            if thread is not None:
                thread.join(timeout=self.SHUTDOWN_TIMEOUT)
            if not loop.is_running():
                loop.close()
            logger.debug("Change relay loop stopped")
        self._client = None
        self._client_lock = None
