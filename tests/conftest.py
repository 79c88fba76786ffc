"""
Shared test fixtures for the dealer console.

Provides an in-memory SQLite database, a fresh session per test with all
tables recreated, and resets the global configuration, logger, dealer
context and correlation ID between tests.
"""

import pytest
from sqlalchemy.orm import Session

from dealer_console.config import reset_config
from dealer_console.context.dealer_context import DealerContext
from dealer_console.db import DatabaseConfig, DatabaseManager
from dealer_console.db.db_config import close_db, initialize_db
from dealer_console.exceptions import clear_correlation_id
from dealer_console.utils.logger import reset_logging
from tests.fixtures.factories import ALL_FACTORIES


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """SQLite in-memory database in development mode."""
    return DatabaseConfig(db_type="sqlite", database=":memory:", development_mode=True)


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    manager = initialize_db(db_config)
    yield manager
    close_db()


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Session:
    """
    Fresh database session for each test.

    Tables are created before and dropped after every test so no rows leak
    between tests. Factories are bound to the same session.
    """
    db_manager.create_tables()
    session = db_manager.get_session()

    for factory_class in ALL_FACTORIES:
        factory_class._meta.sqlalchemy_session = session

    yield session

    session.rollback()
    db_manager.close_session()
    db_manager.drop_tables()


@pytest.fixture(autouse=True)
def reset_globals():
    """Start every test with default config, the root logger and no dealer or correlation ID."""
    reset_config()
    reset_logging()
    DealerContext.clear_current_dealer()
    clear_correlation_id()
    yield
    reset_config()
    reset_logging()
    DealerContext.clear_current_dealer()
    clear_correlation_id()
