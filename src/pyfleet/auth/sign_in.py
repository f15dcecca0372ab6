"""Email/password sign-in form."""

from __future__ import annotations

import logging

from pyfleet.auth.countdown import ResendCountdown
from pyfleet.auth.manager import AuthManager
from pyfleet.auth.two_factor import TwoFactorFlow, TwoFactorMode
from pyfleet.auth.validation import is_valid_email
from pyfleet.exceptions import FleetError, SignInError, SignInFailure, TwoFactorError, TwoFactorFailure
from pyfleet.models.users import AppUser

_logger = logging.getLogger(__name__)


class SignInFlow:
    """Validate the sign-in form and hand over to two-factor when needed.

    After :meth:`sign_in` returns ``None``, :attr:`is_2fa_required` is set
    and :meth:`start_two_factor` builds the verification step for the
    pending user.
    """

    def __init__(self, auth: AuthManager, *, mode: TwoFactorMode = TwoFactorMode.SERVER) -> None:
        self._auth = auth
        self._mode = mode
        self._pending_user: AppUser | None = None
        self.is_2fa_required = False
        self.error_message: str | None = None

    @property
    def pending_user(self) -> AppUser | None:
        return self._pending_user

    def _reject(self, reason: SignInFailure) -> SignInError:
        self.error_message = reason.value
        return SignInError(reason)

    async def sign_in(self, email: str, password: str) -> AppUser | None:
        """Sign in.

        Returns
        -------
        AppUser or None
            The user when no second factor is needed, otherwise ``None``
            with :attr:`is_2fa_required` set.

        Raises
        ------
        SignInError
            If the form is invalid.
        FleetInvalidCredentialsError, FleetInactiveUserError
            If the backend rejects the sign-in.
        """
        email = email.strip()
        if not email or not password:
            raise self._reject(SignInFailure.EMPTY_FIELDS)
        if not is_valid_email(email):
            raise self._reject(SignInFailure.INVALID_EMAIL)

        self.error_message = None
        self._clear_pending()
        try:
            user = await self._auth.sign_in_and_initiate_2fa(email, password)
        except FleetError as exc:
            self.error_message = str(exc)
            raise

        if self._auth.is_2fa_completed:
            return user

        self.is_2fa_required = True
        self._pending_user = user
        return None

    def _clear_pending(self) -> None:
        self._pending_user = None
        self.is_2fa_required = False

    def start_two_factor(self, countdown: ResendCountdown | None = None) -> TwoFactorFlow:
        """Build the two-factor step for the pending user.

        The code sent during :meth:`sign_in` counts as the first send, so
        the resend countdown is already running on the returned flow.
        Call from a running event loop.

        Raises
        ------
        TwoFactorError
            ``NOT_PENDING`` if no sign-in is waiting for verification, or
            its session is gone (for example after a failed verification).
        """
        if self._pending_user is not None and not self._auth.is_authenticated:
            self._clear_pending()
        if self._pending_user is None:
            raise TwoFactorError(TwoFactorFailure.NOT_PENDING)
        countdown = countdown or ResendCountdown(self._auth.resend_seconds)
        if self._auth.is_two_factor_code_sent:
            countdown.start_background()
        return TwoFactorFlow(
            self._auth,
            self._pending_user,
            countdown=countdown,
            mode=self._mode,
            on_cancel=self._clear_pending,
        )
