"""Internal constants shared across the library."""

USER_AGENT = "pyfleet/0.4"

# ------------------------------------------------------------------
# Backend surface
# ------------------------------------------------------------------

AUTH_PREFIX = "/auth/v1"
REST_PREFIX = "/rest/v1"
RPC_PREFIX = f"{REST_PREFIX}/rpc"

USER_ROLES_TABLE = "UserRoles"
USER_META_DATA_TABLE = "UserMetaData"

#: Auth error codes that mean the access token is no longer usable.
SESSION_EXPIRED_CODES: frozenset[str] = frozenset({"bad_jwt", "session_expired", "session_not_found", "PGRST301", "PGRST303"})

#: Auth error codes returned for a rejected email/password pair.
INVALID_CREDENTIALS_CODES: frozenset[str] = frozenset({"invalid_grant", "invalid_credentials"})

OTP_RATE_LIMIT_CODES: frozenset[str] = frozenset({"over_email_send_rate_limit", "over_request_rate_limit"})

# ------------------------------------------------------------------
# One-time codes and resend gating
# ------------------------------------------------------------------

OTP_LENGTH = 6
RESEND_COUNTDOWN_SECONDS = 60
MIN_PASSWORD_LENGTH = 8

# ------------------------------------------------------------------
# Wire formats
# ------------------------------------------------------------------

ISO8601_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
DAY_FORMAT = "%Y-%m-%d"
