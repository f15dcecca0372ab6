"""Client configuration for pyfleet."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfleet._constants import RESEND_COUNTDOWN_SECONDS


_ENV_SMTP_MAP = {
    "FLEET_SMTP_HOST": "host",
    "FLEET_SMTP_USERNAME": "username",
    "FLEET_SMTP_PASSWORD": "password",
    "FLEET_SMTP_SENDER": "sender",
}


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SmtpSettings:
    """Outbound SMTP relay used for welcome e-mails.

    Leaving ``host`` or ``sender`` empty disables the mailer.
    """

    host: str = ""
    port: int = 587
    username: str = ""
    password: str = ""
    sender: str = ""
    starttls: bool = True
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender)


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Client configuration.

    Parameters
    ----------
    url : str
        Backend project URL (e.g. ``"https://abc.supabase.co"``).
    anon_key : str
        Public API key sent as ``apikey`` with every request.
    two_factor_enabled : bool
        Global two-factor feature flag.  When on, every sign-in that is
        not a first-time login must complete an e-mail code step.
    session_ttl : float
        Fallback session lifetime in seconds, used only when the backend
        omits ``expires_in``/``expires_at``.  ``0`` disables local expiry.
    otp_resend_seconds : int
        Countdown before a one-time code can be re-sent.
    request_timeout : float
        Total timeout for a single HTTP request.
    realtime_enabled : bool
        Subscribe to the notification channel after bootstrap.
    realtime_heartbeat : float
        Seconds between realtime heartbeats.
    notification_schema : str
        Database schema of the notification table.
    notification_table : str
        Table whose inserts are relayed as notifications.
    smtp : SmtpSettings
        Outbound SMTP relay for welcome e-mails.
    """

    url: str
    anon_key: str
    two_factor_enabled: bool = True
    session_ttl: float = 3600.0
    otp_resend_seconds: int = RESEND_COUNTDOWN_SECONDS
    request_timeout: float = 30.0
    realtime_enabled: bool = True
    realtime_heartbeat: float = 25.0
    notification_schema: str = "public"
    notification_table: str = "notifications"
    smtp: SmtpSettings = dataclasses.field(default_factory=SmtpSettings)

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetConfig:
        """Create configuration from environment variables.

        Reads ``FLEET_URL``, ``FLEET_ANON_KEY`` and optional ``FLEET_*``
        variables. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FleetConfig
            Populated configuration.
        """
        env = os.environ

        smtp_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_SMTP_MAP.items():
            val = env.get(env_key)
            if val is not None:
                smtp_kwargs[field_name] = val
        port_env = env.get("FLEET_SMTP_PORT")
        if port_env is not None:
            smtp_kwargs["port"] = int(port_env)
        smtp_timeout_env = env.get("FLEET_SMTP_TIMEOUT")
        if smtp_timeout_env is not None:
            smtp_kwargs["timeout"] = float(smtp_timeout_env)
        starttls_env = env.get("FLEET_SMTP_STARTTLS")
        if starttls_env is not None:
            smtp_kwargs["starttls"] = _env_bool(starttls_env, True)

        # Allow overriding SMTP fields via a nested dict
        smtp_overrides = overrides.pop("smtp", None)
        if isinstance(smtp_overrides, dict):
            smtp_kwargs.update(smtp_overrides)
        elif isinstance(smtp_overrides, SmtpSettings):
            smtp_kwargs = dataclasses.asdict(smtp_overrides)

        config_kwargs: dict[str, Any] = {
            "url": env.get("FLEET_URL", ""),
            "anon_key": env.get("FLEET_ANON_KEY", ""),
            "smtp": SmtpSettings(**smtp_kwargs),
        }

        for env_key, field_name in (
            ("FLEET_NOTIFICATION_SCHEMA", "notification_schema"),
            ("FLEET_NOTIFICATION_TABLE", "notification_table"),
        ):
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in (
            ("FLEET_SESSION_TTL", "session_ttl"),
            ("FLEET_REQUEST_TIMEOUT", "request_timeout"),
            ("FLEET_REALTIME_HEARTBEAT", "realtime_heartbeat"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = float(val)

        resend_env = env.get("FLEET_OTP_RESEND_SECONDS")
        if resend_env is not None and "otp_resend_seconds" not in overrides:
            config_kwargs["otp_resend_seconds"] = int(resend_env)

        if "two_factor_enabled" not in overrides:
            config_kwargs["two_factor_enabled"] = _env_bool(env.get("FLEET_TWO_FACTOR_ENABLED"), True)

        if "realtime_enabled" not in overrides:
            config_kwargs["realtime_enabled"] = _env_bool(env.get("FLEET_REALTIME_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
