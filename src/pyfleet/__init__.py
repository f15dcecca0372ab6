"""pyfleet - Async Python client for a hosted fleet-management backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfleet")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfleet.auth import (
    AuthManager,
    FirstLoginPasswordReset,
    PasswordResetStep,
    PasswordResetWizard,
    ResendCountdown,
    SignInFlow,
    TwoFactorFlow,
    TwoFactorMode,
    TwoFactorState,
)
from pyfleet.client import FleetClient
from pyfleet.config import FleetConfig, SmtpSettings
from pyfleet.exceptions import (
    FleetApiError,
    FleetAuthenticationError,
    FleetConfigError,
    FleetError,
    FleetInactiveUserError,
    FleetInvalidCredentialsError,
    FleetRateLimitError,
    FleetSessionExpiredError,
    FleetTransportError,
    FleetValidationError,
    PasswordResetError,
    PasswordUpdateError,
    SignInError,
    TwoFactorError,
)
from pyfleet.gateway import RemoteGateway
from pyfleet.models import (
    AppUser,
    Driver,
    DriverStatus,
    FleetManager,
    FuelType,
    Invoice,
    MaintenancePersonnel,
    MaintenanceStatus,
    MaintenanceTask,
    PushNotification,
    Role,
    ServiceCenter,
    Trip,
    TripStatus,
    Vehicle,
    VehicleStatus,
)
from pyfleet.notifications import NotificationRelay
from pyfleet.session import Session
from pyfleet.state import FleetStore, StoreChange, StoreSection

__all__ = [
    "__version__",
    "AppUser",
    "AuthManager",
    "Driver",
    "DriverStatus",
    "FirstLoginPasswordReset",
    "FleetApiError",
    "FleetAuthenticationError",
    "FleetClient",
    "FleetConfig",
    "FleetConfigError",
    "FleetError",
    "FleetInactiveUserError",
    "FleetInvalidCredentialsError",
    "FleetManager",
    "FleetRateLimitError",
    "FleetSessionExpiredError",
    "FleetStore",
    "FleetTransportError",
    "FleetValidationError",
    "FuelType",
    "Invoice",
    "MaintenancePersonnel",
    "MaintenanceStatus",
    "MaintenanceTask",
    "NotificationRelay",
    "PasswordResetError",
    "PasswordResetStep",
    "PasswordResetWizard",
    "PasswordUpdateError",
    "PushNotification",
    "RemoteGateway",
    "ResendCountdown",
    "Role",
    "ServiceCenter",
    "Session",
    "SignInError",
    "SignInFlow",
    "SmtpSettings",
    "StoreChange",
    "StoreSection",
    "Trip",
    "TripStatus",
    "TwoFactorError",
    "TwoFactorFlow",
    "TwoFactorMode",
    "TwoFactorState",
    "Vehicle",
    "VehicleStatus",
]
