"""Utility modules for the dealer console.

Persistence helpers (crud_helpers, store_config_utils) import the db package,
which imports the logger from here, so they are imported from their modules
directly rather than re-exported.
"""

from .json_utils import dumps
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    DealerContextFilter,
    configure_logging,
    get_logger,
)

__all__ = [
    "dumps",
    # Logging
    "AzureQueueHandler",
    "ContextAwareLogger",
    "DealerContextFilter",
    "configure_logging",
    "get_logger",
]
