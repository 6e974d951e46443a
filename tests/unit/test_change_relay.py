# =============================================================================
# tests/unit/test_change_relay.py
# Unit Tests for the realtime ChangeRelay
# =============================================================================

import pytest

from csc_core.offline.change_relay import ChangeRelay
from csc_core.offline.remote_store import RemoteStore

TIMEOUT = 5


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.subscriptions = []
        self.joined = False

    def on_postgres_changes(self, event, schema=None, table=None, callback=None):
        self.subscriptions.append((event, schema, table, callback))
        return self

    async def subscribe(self):
        self.joined = True
        return self

    def fire(self, payload=None):
        for _, _, _, callback in self.subscriptions:
            callback(payload or {"eventType": "UPDATE"})


class FakeAsyncClient:
    def __init__(self):
        self.channels = []
        self.removed = []

    def channel(self, name):
        channel = FakeChannel(name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel):
        self.removed.append(channel)


@pytest.fixture
def realtime_client():
    return FakeAsyncClient()


@pytest.fixture
def relay(realtime_client):
    async def factory(url, key):
        return realtime_client

    relay = ChangeRelay("https://example.supabase.co", "k", client_factory=factory)
    yield relay
    relay.close()


class TestChangeRelay:
    """Test per-table channels"""

    def test_subscribe_opens_table_channel(self, relay, realtime_client):
        subscription = relay.subscribe("jobs", lambda: None)
        channel = subscription.ready.result(timeout=TIMEOUT)

        assert channel.name == "public:jobs"
        assert channel.joined
        event, schema, table, _ = channel.subscriptions[0]
        assert (event, schema, table) == ("*", "public", "jobs")

    def test_events_invoke_callback_without_payload(self, relay):
        calls = []
        subscription = relay.subscribe("customers", lambda: calls.append("changed"))
        channel = subscription.ready.result(timeout=TIMEOUT)

        channel.fire({"eventType": "INSERT", "new": {"id": "c1"}})
        channel.fire({"eventType": "DELETE", "old": {"id": "c1"}})

        assert calls == ["changed", "changed"]

    def test_callback_errors_are_contained(self, relay):
        def explode():
            raise RuntimeError("render failed")

        subscription = relay.subscribe("jobs", explode)
        channel = subscription.ready.result(timeout=TIMEOUT)

        channel.fire()  # must not raise

    def test_unsubscribe_removes_channel_once(self, relay, realtime_client):
        subscription = relay.subscribe("jobs", lambda: None)
        channel = subscription.ready.result(timeout=TIMEOUT)

        subscription().result(timeout=TIMEOUT)
        second = subscription()

        assert second is None
        assert realtime_client.removed == [channel]
        assert relay.active_subscriptions == 0

    def test_closed_handles_are_released(self, relay):
        for _ in range(5):
            subscription = relay.subscribe("jobs", lambda: None)
            subscription.ready.result(timeout=TIMEOUT)
            subscription().result(timeout=TIMEOUT)
        kept = relay.subscribe("customers", lambda: None)

        assert relay.active_subscriptions == 1
        assert relay._subscriptions == [kept]

    def test_one_client_shared_across_tables(self, realtime_client):
        created = []

        async def factory(url, key):
            created.append(1)
            return realtime_client

        relay = ChangeRelay("https://example.supabase.co", "k", client_factory=factory)
        first = relay.subscribe("jobs", lambda: None)
        second = relay.subscribe("customers", lambda: None)
        first.ready.result(timeout=TIMEOUT)
        second.ready.result(timeout=TIMEOUT)
        relay.close()

        assert len(created) == 1
        assert {c.name for c in realtime_client.channels} == {"public:jobs", "public:customers"}

    def test_close_removes_all_channels(self, realtime_client):
        async def factory(url, key):
            return realtime_client

        relay = ChangeRelay("https://example.supabase.co", "k", client_factory=factory)
        for table in ("jobs", "customers"):
            relay.subscribe(table, lambda: None).ready.result(timeout=TIMEOUT)

        relay.close()

        assert len(realtime_client.removed) == 2
        assert relay.active_subscriptions == 0

    def test_failed_connect_does_not_raise(self):
        async def factory(url, key):
            raise ConnectionError("websocket refused")

        relay = ChangeRelay("https://example.supabase.co", "k", client_factory=factory)
        subscription = relay.subscribe("jobs", lambda: None)

        with pytest.raises(ConnectionError):
            subscription.ready.result(timeout=TIMEOUT)
        assert subscription().result(timeout=TIMEOUT) is None
        relay.close()


class TestRemoteStoreSubscribe:
    """RemoteStore builds the relay lazily with the configured factory"""

    def test_subscribe_through_remote_store(self, realtime_client):
        async def factory(url, key):
            return realtime_client

        remote = RemoteStore(
            url="https://example.supabase.co",
            key="k",
            realtime_client_factory=factory,
        )
        calls = []
        unsubscribe = remote.subscribe("inventory", lambda: calls.append(1))
        unsubscribe.ready.result(timeout=TIMEOUT).fire()
        remote.close()

        assert calls == [1]
        assert realtime_client.channels[0].name == "public:inventory"
