"""
Constants and enums for the dealer console.

This module centralizes the magic strings shared between the persistence
layer, the services and the export feeds.
"""

from enum import Enum


class InvitationStatus(str, Enum):
    """Identity-provider invitation state recorded on a credential."""

    NONE = "none"
    PENDING = "pending"
    INVITED = "invited"
    ACCEPTED = "accepted"
    FAILED = "failed"
    USER_EXISTS = "user_exists"


class SubmissionStatus(str, Enum):
    """Lifecycle of a dealership join request."""

    PENDING = "pending"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONTACTED = "contacted"


class AdvertisementIdSource(str, Enum):
    """Which stored column an advertisement ID was read from."""

    ENHANCED_PRIMARY = "enhanced-primary"
    ENHANCED_ADDITIONAL = "enhanced-additional"
    LEGACY_PRIMARY = "legacy-primary"
    LEGACY_ADDITIONAL = "legacy-additional"
    NONE = "none"


class DealerRole(str, Enum):
    """Roles a dealer account can hold."""

    DEALER = "dealer"
    ADMIN = "admin"
    STORE_OWNER = "store_owner"


class ExportFormat(str, Enum):
    """External listing feeds the exporter can produce."""

    CF247 = "cf247"
    AA_CARS = "aacars"


class LifecycleState(str, Enum):
    """Stock lifecycle states relevant to exports."""

    FORECOURT = "FORECOURT"
    SOLD = "SOLD"
    DELETED = "DELETED"
    DUE_IN = "DUE_IN"


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    DATABASE_URL = "DATABASE_URL"
    APP_BASE_URL = "APP_BASE_URL"
    LOG_LEVEL = "LOG_LEVEL"
    CLERK_SECRET_KEY = "CLERK_SECRET_KEY"
    CLERK_API_URL = "CLERK_API_URL"
    ADMIN_EMAILS = "ADMIN_EMAILS"
