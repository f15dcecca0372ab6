"""Internal realtime channel bootstrap, parsing, and runtime helpers.

Subscriptions go through the ``supabase`` async client: one channel per
runtime with a ``postgres_changes`` binding for row inserts.  The client
is created with automatic reconnection disabled.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetTransportError
from pyfleet.session import Session

SUBSCRIBED = "SUBSCRIBED"

ClientFactory = Callable[[FleetConfig], Awaitable[AsyncClient]]


@dataclass(frozen=True)
class RealtimeBootstrap:
    """Channel and ``postgres_changes`` filter for one subscription."""

    channel: str
    schema: str
    table: str
    filter: str
    access_token: str

    @property
    def topic(self) -> str:
        return f"realtime:{self.channel}"


def build_insert_bootstrap(
    config: FleetConfig,
    session: Session,
    *,
    filter_column: str,
    filter_value: str,
) -> RealtimeBootstrap:
    """Channel for INSERTs on the notification table matching one column value."""
    schema = config.notification_schema
    table = config.notification_table
    return RealtimeBootstrap(
        channel=f"{schema}:{table}",
        schema=schema,
        table=table,
        filter=f"{filter_column}=eq.{filter_value}",
        access_token=session.access_token,
    )


def extract_inserted_record(payload: Mapping[str, Any]) -> dict[str, Any] | None:
    """Return the inserted row carried by a change callback payload, if any.

    Accepts the ``postgres_changes`` shape (``data.record``) as well as
    payloads carrying the row directly under ``new`` or ``record``.
    """
    data = payload.get("data")
    if isinstance(data, dict):
        if data.get("type", "INSERT") != "INSERT":
            return None
        record = data.get("record", data.get("new"))
    else:
        record = payload.get("new", payload.get("record"))
    return record if isinstance(record, dict) else None


async def create_realtime_client(config: FleetConfig) -> AsyncClient:
    options = AsyncClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        realtime={"auto_reconnect": False, "hb_interval": int(config.realtime_heartbeat)},
    )
    return await acreate_client(config.base_url, config.anon_key, options=options)


class RealtimeRuntime:
    """Owns one supabase client and one subscribed channel."""

    def __init__(
        self,
        config: FleetConfig,
        *,
        on_record: Callable[[dict[str, Any]], None],
        client_factory: ClientFactory = create_realtime_client,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._on_record = on_record
        self._client_factory = client_factory
        self._logger = logger or logging.getLogger(__name__)
        self._client: AsyncClient | None = None
        self._channel: Any = None
        self._bootstrap: RealtimeBootstrap | None = None
        self._joined = False

    @property
    def is_running(self) -> bool:
        return self._channel is not None

    @property
    def is_joined(self) -> bool:
        return self._joined

    @property
    def topic(self) -> str | None:
        return self._bootstrap.topic if self._bootstrap is not None else None

    async def start(self, bootstrap: RealtimeBootstrap) -> None:
        """Authorize the socket, bind the insert filter and subscribe."""
        if self.is_running:
            await self.stop()
        try:
            if self._client is None:
                self._client = await self._client_factory(self._config)
            await self._client.realtime.set_auth(bootstrap.access_token)
            channel = self._client.channel(bootstrap.channel)
            channel.on_postgres_changes(
                "INSERT",
                callback=self._handle_change,
                schema=bootstrap.schema,
                table=bootstrap.table,
                filter=bootstrap.filter,
            )
            self._bootstrap = bootstrap
            self._channel = channel
            self._joined = False
            await channel.subscribe(self._handle_state)
        except (OSError, TimeoutError) as exc:
            await self.stop()
            raise FleetTransportError(f"Realtime subscribe failed: {exc}", endpoint="realtime") from exc
        self._logger.debug("Realtime subscribe sent topic=%s", bootstrap.topic)

    async def update_access_token(self, access_token: str) -> None:
        """Hand a refreshed access token to the joined channel."""
        if self._client is None or not self.is_running:
            return
        await self._client.realtime.set_auth(access_token)

    async def stop(self) -> None:
        """Remove the channel from the client."""
        channel, self._channel = self._channel, None
        client = self._client
        self._bootstrap = None
        self._joined = False
        if channel is None or client is None:
            return
        try:
            await client.remove_channel(channel)
        except (OSError, TimeoutError):
            self._logger.debug("Realtime leave failed", exc_info=True)

    def _handle_state(self, state: Any, error: Exception | None = None) -> None:
        status = getattr(state, "value", state)
        topic = self.topic
        if status == SUBSCRIBED:
            self._joined = True
            self._logger.info("Successfully subscribed to %s", topic)
            return
        self._joined = False
        if error is not None:
            self._logger.warning("Realtime channel %s is %s: %s", topic, status, error)
        else:
            self._logger.info("Realtime channel %s is %s", topic, status)

    def _handle_change(self, payload: dict[str, Any]) -> None:
        record = extract_inserted_record(payload)
        if record is None:
            return
        try:
            self._on_record(record)
        except Exception:
            self._logger.debug("Realtime record callback failed", exc_info=True)
