"""
Dealer context for the current request.

Handlers set the dealer a request acts on so that log records and operation
contexts can be stamped with it without threading the id through every call.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional


class DealerContext:
    """Thread-local holder for the dealer the current request acts on."""

    _thread_local = threading.local()
    _logger = logging.getLogger(__name__)

    @classmethod
    def set_current_dealer(cls, dealer_id: str) -> None:
        """
        Set the current dealer ID.

        Raises:
            ValueError: If dealer_id is empty
        """
        if not dealer_id or not isinstance(dealer_id, str) or not dealer_id.strip():
            raise ValueError("dealer_id must be a non-empty string")

        cls._thread_local.dealer_id = dealer_id.strip()
        cls._logger.debug(f"Current dealer set to: {dealer_id}")

    @classmethod
    def get_current_dealer_id(cls) -> Optional[str]:
        return getattr(cls._thread_local, "dealer_id", None)

    @classmethod
    def clear_current_dealer(cls) -> None:
        if hasattr(cls._thread_local, "dealer_id"):
            delattr(cls._thread_local, "dealer_id")


@contextmanager
def dealer_context(dealer_id: str) -> Generator[str, None, None]:
    """Run a block with ``dealer_id`` as the current dealer, restoring the previous one."""
    previous = DealerContext.get_current_dealer_id()
    DealerContext.set_current_dealer(dealer_id)
    try:
        yield dealer_id
    finally:
        if previous:
            DealerContext.set_current_dealer(previous)
        else:
            DealerContext.clear_current_dealer()
