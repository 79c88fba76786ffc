"""
Database connection setup.

DatabaseConfig describes where the console's tables live: SQLite for
development and tests, PostgreSQL in production. DatabaseManager owns the
engine and the session factories; one manager is installed globally with
initialize_db() and handed out by get_db_manager().
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import Session, declarative_base, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..exceptions import ErrorCode, ServiceError, ValidationError
from ..utils.logger import get_logger

Base: Any = declarative_base()

_IN_MEMORY = ("", ":memory:")


class DatabaseConfig(BaseModel):
    """Connection settings; ``url`` wins over the individual parts."""

    db_type: str = "postgres"
    database: str = ""
    host: str = ""
    port: int = 5432
    username: str = ""
    password: str = ""
    url: Optional[str] = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False
    development_mode: bool = False

    @property
    def is_sqlite(self) -> bool:
        if self.url:
            return self.url.startswith("sqlite")
        return self.db_type.lower() == "sqlite"

    def get_connection_string(self) -> str:
        """
        Raises:
            ValidationError: If Postgres parts are missing or db_type is unknown
        """
        if self.url:
            return self.url

        kind = self.db_type.lower()
        if kind == "sqlite":
            if self.database in _IN_MEMORY:
                return "sqlite://"
            return f"sqlite:///{self.database}"

        if kind != "postgres":
            raise ValidationError(
                f"Unsupported database type: {self.db_type}",
                field="db_type",
                error_code=ErrorCode.INVALID_FORMAT,
            )

        missing = [
            name
            for name in ("host", "database", "username", "password")
            if not getattr(self, name)
        ]
        if missing:
            raise ValidationError(
                "Missing required Postgres configuration parameters",
                field="database_config",
                error_code=ErrorCode.MISSING_REQUIRED,
                missing=missing,
            )
        return URL.create(
            "postgresql",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        ).render_as_string(hide_password=False)

    def engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.echo}
        if not self.is_sqlite:
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_pre_ping=True,
            )
            return options

        # Bulk-load fallbacks read from worker threads
        options["connect_args"] = {"check_same_thread": False}
        if self.get_connection_string() == "sqlite://":
            # Every thread must see the same in-memory database
            options["poolclass"] = StaticPool
        return options

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(db_type='{self.db_type}', host='{self.host}', "
            f"database='{self.database}', username='{self.username}', password='***')"
        )


class DatabaseManager:
    """Engine plus a plain and a thread-scoped session factory."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: Engine = create_engine(config.get_connection_string(), **config.engine_options())
        self.session_factory = sessionmaker(bind=self.engine)
        self.scoped_session = scoped_session(self.session_factory)

    def create_tables(self) -> None:
        import_all_models()
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """
        Raises:
            ServiceError: Outside development mode
        """
        if not self.config.development_mode:
            raise ServiceError(
                "Refusing to drop tables outside development mode",
                operation="drop_tables",
                error_code=ErrorCode.CONFIGURATION_ERROR,
            )
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        return self.scoped_session()

    def close_session(self, session: Optional[Session] = None) -> None:
        if session is not None:
            session.close()
        else:
            self.scoped_session.remove()

    def close(self) -> None:
        self.scoped_session.remove()
        self.engine.dispose()


def get_development_config() -> DatabaseConfig:
    """SQLite, in memory unless DEV_DB_PATH names a file."""
    return DatabaseConfig(
        db_type="sqlite",
        database=os.environ.get("DEV_DB_PATH", ":memory:"),
        echo=os.environ.get("DB_ECHO", "false").lower() == "true",
        development_mode=True,
    )


def get_production_config() -> DatabaseConfig:
    """
    Postgres settings from the environment.

    DATABASE_URL is used as-is when set; otherwise the connection string is
    built from DB_HOST, DB_PORT, DB_NAME, DB_USER and DB_PASSWORD. Pool sizes
    come from the application config.
    """
    settings = get_config().database
    return DatabaseConfig(
        url=settings.connection_string or None,
        host=os.environ.get("DB_HOST", "localhost"),
        port=int(os.environ.get("DB_PORT", "5432")),
        database=os.environ.get("DB_NAME", "dealer_console"),
        username=os.environ.get("DB_USER", "postgres"),
        password=os.environ.get("DB_PASSWORD", ""),
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        echo=settings.echo,
    )


def import_all_models() -> None:
    """Register every model on Base.metadata and resolve relationships."""
    from sqlalchemy.orm import configure_mappers

    from . import db_dealer_models, db_stock_models, db_store_config_models, db_submission_models  # noqa: F401

    configure_mappers()


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """
    Raises:
        ServiceError: If initialize_db() has not been called
    """
    if _db_manager is None:
        raise ServiceError(
            "Database manager not initialized. Call initialize_db() first.",
            operation="get_db_manager",
            error_code=ErrorCode.CONFIGURATION_ERROR,
        )
    return _db_manager


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    global _db_manager
    _db_manager = manager


def initialize_db(config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """Install the global manager, production settings by default, and create missing tables."""
    config = config or get_production_config()
    manager = DatabaseManager(config)
    manager.create_tables()
    set_db_manager(manager)
    get_logger().info(
        "Database initialized",
        extra={"db_type": config.db_type, "development_mode": config.development_mode},
    )
    return manager


def close_db() -> None:
    """Dispose of the global manager's engine and uninstall it."""
    global _db_manager
    if _db_manager is not None:
        _db_manager.close()
        _db_manager = None
