"""
Application configuration.

Settings are pydantic models filled from environment variables when they
are constructed. One AppConfig is cached globally; tests and scripts
install their own with set_config().
"""

import os
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import EnvironmentVariable, LifecycleState, LogLevel


def _env(variable: EnvironmentVariable, default: str = "") -> Callable[[], str]:
    """default_factory reading ``variable`` at construction time."""
    return lambda: os.getenv(variable.value, default)


def _admin_emails() -> List[str]:
    raw = os.getenv(EnvironmentVariable.ADMIN_EMAILS.value, "")
    return [email.strip() for email in raw.split(",") if email.strip()]


class DatabaseConfig(BaseModel):
    """Connection URL and pool sizing."""

    connection_string: str = Field(
        default_factory=_env(EnvironmentVariable.DATABASE_URL),
        description="Database URL, empty to build one from the DB_* variables",
    )
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    echo: bool = False


class IdentityProviderConfig(BaseModel):
    """Settings for the account invitation provider (Clerk backend API)."""

    secret_key: str = Field(default_factory=_env(EnvironmentVariable.CLERK_SECRET_KEY))
    api_url: str = Field(
        default_factory=_env(EnvironmentVariable.CLERK_API_URL, "https://api.clerk.com/v1")
    )
    app_base_url: str = Field(
        default_factory=_env(EnvironmentVariable.APP_BASE_URL, "http://localhost:3000"),
        description="Public URL of the console, used for invitation redirects",
    )
    request_timeout: int = Field(default=15, description="HTTP timeout in seconds")

    @property
    def redirect_url(self) -> str:
        """Sign-in page invited users land on."""
        return f"{self.app_base_url.rstrip('/')}/sign-in"


class LoggingConfig(BaseModel):
    level: str = Field(
        default_factory=_env(EnvironmentVariable.LOG_LEVEL, LogLevel.INFO.value),
        validate_default=True,
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LogLevel.__members__:
            raise ValueError(f"Invalid log level: {v}. Must be one of {list(LogLevel.__members__)}")
        return level


class QueueConfig(BaseModel):
    """Azure Storage queue used for shipping structured logs."""

    connection_string: str = Field(default_factory=_env(EnvironmentVariable.AZURE_STORAGE_CONNECTION))
    logs_queue_name: str = "logs-queue"


class ExportConfig(BaseModel):
    """Feed export settings."""

    exported_state: str = Field(
        default=LifecycleState.FORECOURT.value,
        description="Only vehicles in this lifecycle state are exported",
    )
    cf247_image_size: str = Field(default="w800h600", description="CF247 image resize token")
    aacars_image_size: str = Field(default="w1280h960", description="AA Cars image resize token")


class FeatureFlags(BaseModel):
    send_invitations_on_create: bool = Field(
        default=True, description="Invite the dealer when a credential is first created"
    )
    enable_logs_queue: bool = Field(default=False, description="Ship logs to the Azure queue")
    bulk_load_fallback: bool = Field(
        default=True, description="Fall back to per-item loads when a bulk load fails"
    )


class AppConfig(BaseModel):
    admin_emails: List[str] = Field(
        default_factory=_admin_emails,
        description="Emails allowed to use the admin console",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    identity: IdentityProviderConfig = Field(default_factory=IdentityProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    features: FeatureFlags = Field(default_factory=FeatureFlags)

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls()

    def is_admin(self, email: Optional[str]) -> bool:
        """Check whether an email belongs to a console administrator."""
        return bool(email) and email.strip() in self.admin_emails


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """The global configuration, read from the environment on first use."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    global _config
    _config = config


def reset_config() -> None:
    global _config
    _config = None
