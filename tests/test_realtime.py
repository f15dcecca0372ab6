from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

import pytest
from _fakes import DRIVER_ID, make_config, make_session

from pyfleet._realtime import RealtimeBootstrap, RealtimeRuntime, build_insert_bootstrap, extract_inserted_record
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetTransportError


class _State(str, Enum):
    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"


class _FakeChannel:
    def __init__(self, name: str, *, state: _State = _State.SUBSCRIBED, fail: Exception | None = None) -> None:
        self.name = name
        self.bindings: list[dict[str, Any]] = []
        self.state = state
        self.fail = fail

    def on_postgres_changes(self, event: str, callback: Callable[[dict[str, Any]], None], **kwargs: Any) -> _FakeChannel:
        self.bindings.append({"event": event, "callback": callback, **kwargs})
        return self

    async def subscribe(self, callback: Callable[..., None]) -> _FakeChannel:
        if self.fail is not None:
            raise self.fail
        callback(self.state, None)
        return self

    def emit(self, payload: dict[str, Any]) -> None:
        for binding in self.bindings:
            binding["callback"](payload)


class _FakeRealtime:
    def __init__(self) -> None:
        self.tokens: list[str] = []

    async def set_auth(self, token: str) -> None:
        self.tokens.append(token)


class _FakeClient:
    def __init__(self, **channel_kwargs: Any) -> None:
        self.realtime = _FakeRealtime()
        self.channels: list[_FakeChannel] = []
        self.removed: list[_FakeChannel] = []
        self._channel_kwargs = channel_kwargs

    def channel(self, name: str) -> _FakeChannel:
        channel = _FakeChannel(name, **self._channel_kwargs)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: _FakeChannel) -> None:
        self.removed.append(channel)


def _factory(client: _FakeClient, created: list[FleetConfig] | None = None) -> Callable[[FleetConfig], Any]:
    async def _create(config: FleetConfig) -> _FakeClient:
        if created is not None:
            created.append(config)
        return client

    return _create


def _bootstrap() -> RealtimeBootstrap:
    return build_insert_bootstrap(make_config(), make_session(DRIVER_ID), filter_column="recipient_id", filter_value=DRIVER_ID)


def _insert(record: dict[str, Any]) -> dict[str, Any]:
    return {"ids": [1], "data": {"type": "INSERT", "schema": "public", "table": "notifications", "record": record}}


# ------------------------------------------------------------------
# Bootstrap and payload helpers
# ------------------------------------------------------------------


def test_insert_bootstrap_filters_on_recipient() -> None:
    bootstrap = _bootstrap()

    assert bootstrap.channel == "public:notifications"
    assert bootstrap.topic == "realtime:public:notifications"
    assert bootstrap.schema == "public"
    assert bootstrap.table == "notifications"
    assert bootstrap.filter == f"recipient_id=eq.{DRIVER_ID}"
    assert bootstrap.access_token == "access-1"


def test_custom_notification_table() -> None:
    config = make_config(notification_schema="fleet", notification_table="alerts")
    bootstrap = build_insert_bootstrap(config, make_session(DRIVER_ID), filter_column="recipient_id", filter_value=DRIVER_ID)

    assert bootstrap.topic == "realtime:fleet:alerts"


def test_extract_inserted_record_shapes() -> None:
    record = {"id": "n1"}

    assert extract_inserted_record(_insert(record)) == record
    assert extract_inserted_record({"new": record}) == record
    assert extract_inserted_record({"record": record}) == record
    assert extract_inserted_record({"data": {"type": "UPDATE", "record": record}}) is None
    assert extract_inserted_record({"data": {"type": "INSERT", "record": "nope"}}) is None
    assert extract_inserted_record({}) is None


# ------------------------------------------------------------------
# Runtime
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_runtime_subscribe_deliver_and_stop() -> None:
    client = _FakeClient()
    created: list[FleetConfig] = []
    records: list[dict[str, Any]] = []
    config = make_config()
    runtime = RealtimeRuntime(config, on_record=records.append, client_factory=_factory(client, created))

    await runtime.start(_bootstrap())

    assert created == [config]
    assert client.realtime.tokens == ["access-1"]
    channel = client.channels[0]
    assert channel.name == "public:notifications"
    binding = channel.bindings[0]
    assert binding["event"] == "INSERT"
    assert binding["schema"] == "public"
    assert binding["table"] == "notifications"
    assert binding["filter"] == f"recipient_id=eq.{DRIVER_ID}"
    assert runtime.is_running
    assert runtime.is_joined
    assert runtime.topic == "realtime:public:notifications"

    channel.emit(_insert({"id": "n1"}))
    channel.emit({"data": {"type": "DELETE", "record": {"id": "n2"}}})
    assert records == [{"id": "n1"}]

    await runtime.stop()

    assert client.removed == [channel]
    assert not runtime.is_running
    assert not runtime.is_joined
    assert runtime.topic is None


@pytest.mark.asyncio
async def test_runtime_channel_error_stays_unjoined() -> None:
    client = _FakeClient(state=_State.CHANNEL_ERROR)
    runtime = RealtimeRuntime(make_config(), on_record=lambda record: None, client_factory=_factory(client))

    await runtime.start(_bootstrap())

    assert runtime.is_running
    assert not runtime.is_joined
    await runtime.stop()


@pytest.mark.asyncio
async def test_runtime_connection_failure_is_wrapped_and_cleaned_up() -> None:
    client = _FakeClient(fail=ConnectionResetError("reset by peer"))
    runtime = RealtimeRuntime(make_config(), on_record=lambda record: None, client_factory=_factory(client))

    with pytest.raises(FleetTransportError):
        await runtime.start(_bootstrap())

    assert not runtime.is_running
    assert client.removed == client.channels


@pytest.mark.asyncio
async def test_runtime_callback_failure_is_contained() -> None:
    client = _FakeClient()

    def _broken(record: dict[str, Any]) -> None:
        raise RuntimeError("callback bug")

    runtime = RealtimeRuntime(make_config(), on_record=_broken, client_factory=_factory(client))
    await runtime.start(_bootstrap())

    client.channels[0].emit(_insert({"id": "n1"}))
    client.channels[0].emit(_insert({"id": "n2"}))

    assert runtime.is_running
    await runtime.stop()


@pytest.mark.asyncio
async def test_runtime_restart_reuses_client() -> None:
    client = _FakeClient()
    created: list[FleetConfig] = []
    runtime = RealtimeRuntime(make_config(), on_record=lambda record: None, client_factory=_factory(client, created))

    await runtime.start(_bootstrap())
    await runtime.start(_bootstrap())

    assert len(created) == 1
    assert client.removed == [client.channels[0]]
    assert len(client.channels) == 2
    await runtime.stop()


@pytest.mark.asyncio
async def test_runtime_access_token_update() -> None:
    client = _FakeClient()
    runtime = RealtimeRuntime(make_config(), on_record=lambda record: None, client_factory=_factory(client))

    await runtime.update_access_token("ignored-before-start")
    await runtime.start(_bootstrap())
    await runtime.update_access_token("access-2")
    await runtime.stop()

    assert client.realtime.tokens == ["access-1", "access-2"]
