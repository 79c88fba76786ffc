"""Context management for operations and the current dealer."""

from .dealer_context import DealerContext, dealer_context
from .operation_context import OperationContext, operation, traced

__all__ = [
    "DealerContext",
    "dealer_context",
    "OperationContext",
    "traced",
    "operation",
]
