"""Push notifications: send through the backend, receive over realtime."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError

from pyfleet._realtime import RealtimeBootstrap, RealtimeRuntime, build_insert_bootstrap
from pyfleet.auth.manager import AuthManager
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetError
from pyfleet.gateway import RemoteGateway
from pyfleet.models.notification import PushNotification

_logger = logging.getLogger(__name__)

Notifier = Callable[[PushNotification], None]


class ChannelRuntime(Protocol):
    """What the relay needs from a realtime runtime."""

    @property
    def is_running(self) -> bool: ...

    async def start(self, bootstrap: RealtimeBootstrap) -> None: ...

    async def stop(self) -> None: ...


RuntimeFactory = Callable[[Callable[[dict[str, Any]], None]], ChannelRuntime]


def log_notifier(notification: PushNotification) -> None:
    """Default notifier: log the notification at INFO."""
    _logger.info("Notification %s: %s", notification.title, notification.message)


def _same_id(left: str, right: str) -> bool:
    return left.strip().lower() == right.strip().lower()


class NotificationRelay:
    """Send notifications and surface the ones addressed to the signed-in user.

    Parameters
    ----------
    config : FleetConfig
        Supplies the notification schema/table and realtime settings.
    auth : AuthManager
        Source of the session (recipient filter and channel token).
    gateway : RemoteGateway
        Used to send notifications.
    notifier : callable, optional
        Called with every notification for the current user.  Defaults to
        logging it.
    runtime_factory : callable, optional
        Builds the channel runtime from a record callback.  Defaults to a
        :class:`~pyfleet._realtime.RealtimeRuntime` on the supabase client.
    """

    def __init__(
        self,
        config: FleetConfig,
        auth: AuthManager,
        gateway: RemoteGateway,
        *,
        notifier: Notifier | None = None,
        runtime_factory: RuntimeFactory | None = None,
    ) -> None:
        self._config = config
        self._auth = auth
        self._gateway = gateway
        self._notifier = notifier or log_notifier
        self._runtime_factory = runtime_factory
        self._runtime: ChannelRuntime | None = None

    @property
    def is_subscribed(self) -> bool:
        return self._runtime is not None and self._runtime.is_running

    def _build_runtime(self) -> ChannelRuntime:
        if self._runtime_factory is not None:
            return self._runtime_factory(self._on_record)
        return RealtimeRuntime(self._config, on_record=self._on_record)

    async def send_notification(
        self,
        *,
        recipient_id: str,
        title: str,
        message: str,
        sender_id: str | None = None,
    ) -> bool:
        """Send a notification; failures are logged and return ``False``.

        ``sender_id`` defaults to the signed-in user.
        """
        try:
            if sender_id is None:
                sender_id = (await self._auth.ensure_session()).user_id
            await self._gateway.notify_user(
                sender_id=sender_id,
                recipient_id=recipient_id,
                title=title,
                message=message,
            )
        except (FleetError, ValueError) as exc:
            _logger.error("Error sending the notification %r to %s: %s", title, recipient_id, exc)
            return False
        return True

    def handle_payload(self, payload: dict[str, Any]) -> PushNotification | None:
        """Decode an inserted row and surface it if it is for the current user.

        ``payload`` carries the row under ``"new"`` (or ``"record"``).
        """
        record = payload.get("new", payload.get("record"))
        if not isinstance(record, dict):
            _logger.error("Failed to extract 'new' record from payload")
            return None
        try:
            notification = PushNotification.model_validate(record)
        except ValidationError as exc:
            _logger.error("Failed to decode notification record: %s", exc)
            return None

        session = self._auth.session
        if session is None or not _same_id(notification.recipient_id, session.user_id):
            return None

        self._notifier(notification)
        return notification

    def _on_record(self, record: dict[str, Any]) -> None:
        _logger.debug("Received new record on %s", self._config.notification_table)
        self.handle_payload({"new": record})

    async def subscribe(self) -> bool:
        """(Re)join the notification channel for the signed-in user.

        Any existing subscription is dropped first.  Failures are logged,
        leave no half-started runtime behind and return ``False``.
        """
        await self.unsubscribe()
        runtime: ChannelRuntime | None = None
        try:
            session = await self._auth.ensure_session()
            bootstrap = build_insert_bootstrap(
                self._config,
                session,
                filter_column="recipient_id",
                filter_value=session.user_id,
            )
            runtime = self._build_runtime()
            await runtime.start(bootstrap)
        except (FleetError, OSError, TimeoutError) as exc:
            _logger.error("Error subscribing to notifications: %s", exc)
            if runtime is not None:
                await runtime.stop()
            return False
        self._runtime = runtime
        _logger.info("Subscribing to %s for real time notifications", bootstrap.topic)
        return True

    async def unsubscribe(self) -> None:
        runtime, self._runtime = self._runtime, None
        if runtime is None:
            _logger.debug("No active subscription to unsubscribe from.")
            return
        await runtime.stop()
        _logger.info("Unsubscribed from table %s.", self._config.notification_table)
