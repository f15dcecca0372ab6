"""High-level async client for the fleet backend."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyfleet._transport import RestTransport, Transport
from pyfleet.auth.manager import AuthManager
from pyfleet.auth.password_reset import FirstLoginPasswordReset, PasswordResetWizard
from pyfleet.auth.sign_in import SignInFlow
from pyfleet.auth.two_factor import TwoFactorMode
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetConfigError, FleetError
from pyfleet.gateway import RemoteGateway
from pyfleet.mailer import WelcomeMailer
from pyfleet.models.users import AppUser
from pyfleet.notifications import NotificationRelay, Notifier
from pyfleet.state.store import FleetStore

_logger = logging.getLogger(__name__)


class FleetClient:
    """Async client for the fleet backend.

    Usage::

        async with FleetClient(FleetConfig.from_env()) as client:
            flow = client.sign_in_flow()
            user = await flow.sign_in(email, password)
            ...
            user = await client.bootstrap()

    Parameters
    ----------
    config : FleetConfig
        Client configuration.
    session : aiohttp.ClientSession, optional
        Externally owned HTTP session.  Not closed on exit.
    transport : Transport, optional
        Replaces the HTTP transport (used by tests).
    notifier : callable, optional
        Receives notifications addressed to the signed-in user.
    """

    def __init__(
        self,
        config: FleetConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._custom_transport = transport
        self._notifier = notifier
        self._auth: AuthManager | None = None
        self._gateway: RemoteGateway | None = None
        self._store: FleetStore | None = None
        self._notifications: NotificationRelay | None = None
        self._mailer: WelcomeMailer | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetClient:
        if not self._config.url or not self._config.anon_key:
            raise FleetConfigError("FleetConfig.url and FleetConfig.anon_key are required")

        transport = self._custom_transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = RestTransport(self._config, self._http_session)

        self._auth = AuthManager(self._config, transport)
        self._gateway = RemoteGateway(self._auth)
        self._mailer = WelcomeMailer(self._config.smtp)
        self._store = FleetStore(self._gateway, mailer=self._mailer)
        self._notifications = NotificationRelay(
            self._config,
            self._auth,
            self._gateway,
            notifier=self._notifier,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._notifications is not None:
            await self._notifications.unsubscribe()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._auth = None
        self._gateway = None
        self._store = None
        self._notifications = None
        self._mailer = None

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _require(self, component: Any) -> Any:
        if component is None:
            raise FleetError("Client not initialized. Use 'async with FleetClient(...) as client:'")
        return component

    @property
    def config(self) -> FleetConfig:
        return self._config

    @property
    def auth(self) -> AuthManager:
        return self._require(self._auth)  # type: ignore[no-any-return]

    @property
    def gateway(self) -> RemoteGateway:
        return self._require(self._gateway)  # type: ignore[no-any-return]

    @property
    def store(self) -> FleetStore:
        return self._require(self._store)  # type: ignore[no-any-return]

    @property
    def notifications(self) -> NotificationRelay:
        return self._require(self._notifications)  # type: ignore[no-any-return]

    @property
    def mailer(self) -> WelcomeMailer:
        return self._require(self._mailer)  # type: ignore[no-any-return]

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def sign_in_flow(self, *, mode: TwoFactorMode = TwoFactorMode.SERVER) -> SignInFlow:
        return SignInFlow(self.auth, mode=mode)

    def password_reset_wizard(self) -> PasswordResetWizard:
        return PasswordResetWizard(self.auth)

    def first_login_password_reset(self) -> FirstLoginPasswordReset:
        return FirstLoginPasswordReset(self.auth)

    # ------------------------------------------------------------------
    # Session bootstrap
    # ------------------------------------------------------------------

    async def bootstrap(self) -> AppUser | None:
        """Resolve the signed-in user and load their role's data.

        Returns ``None`` (with the store cleared) when there is no usable
        session.  When realtime is enabled the notification channel is
        (re)joined.
        """
        user = await self.auth.get_current_session()
        if user is None:
            self.store.clear()
            return None

        _logger.debug("Bootstrapping %s %s", user.role, user.id)
        await self.store.load_for(user)
        if self._config.realtime_enabled:
            await self.notifications.subscribe()
        return user

    async def sign_out(self) -> None:
        """Leave the notification channel, sign out and clear the store."""
        await self.notifications.unsubscribe()
        try:
            await self.auth.sign_out()
        finally:
            self.store.clear()
