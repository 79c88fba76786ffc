"""
SQLAlchemy models and database management for the dealer console.
"""

from .db_base import JSON, TimestampMixin, UUIDMixin, utc_now
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    close_db,
    get_db_manager,
    get_development_config,
    get_production_config,
    import_all_models,
    initialize_db,
    set_db_manager,
)
from .db_dealer_models import Dealer, DealerLogo
from .db_stock_models import StockVehicle
from .db_store_config_models import StoreConfig
from .db_submission_models import JoinSubmission

__all__ = [
    # Base definitions
    "Base",
    "JSON",
    "TimestampMixin",
    "UUIDMixin",
    "utc_now",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "close_db",
    "get_db_manager",
    "get_development_config",
    "get_production_config",
    "import_all_models",
    "initialize_db",
    "set_db_manager",
    # Models
    "Dealer",
    "DealerLogo",
    "JoinSubmission",
    "StockVehicle",
    "StoreConfig",
]
