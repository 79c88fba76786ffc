"""
Service operation tracing.

``@operation()`` wraps a service method so that every call logs ENTER and
EXIT (or ERROR) lines sharing an operation id and a correlation id, with the
duration and the current dealer attached. Nested operations reuse the
correlation id of the outermost one.
"""

import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union, cast

from ..exceptions import BaseError, get_correlation_id, set_correlation_id
from ..utils.logger import ContextAwareLogger, get_logger
from .dealer_context import DealerContext

F = TypeVar("F", bound=Callable[..., Any])

# Collections longer than this are logged by type name only
_MAX_LOGGED_ITEMS = 10


class OperationContext:
    """Identity, timing and collected metrics of one running operation."""

    def __init__(self, operation_name: str, correlation_id: Optional[str] = None, **context):
        self.operation_name = operation_name
        self.operation_id = str(uuid.uuid4())
        self.correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)

        self.context: Dict[str, Any] = {
            **context,
            "operation_id": self.operation_id,
            "correlation_id": self.correlation_id,
        }
        self.metrics: Dict[str, Union[int, float]] = {}
        self._started = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000

    def add_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def add_metric(self, name: str, value: Union[int, float]) -> None:
        self.metrics[name] = value

    def log_extra(self, **more) -> Dict[str, Any]:
        return {**self.context, "duration_ms": round(self.duration_ms, 2), **more}


@contextmanager
def traced(
    name: str, logger: Optional[ContextAwareLogger] = None, **context
) -> Iterator[OperationContext]:
    """Log ENTER/EXIT/ERROR around a block; errors are re-raised."""
    logger = logger or get_logger()
    dealer_id = DealerContext.get_current_dealer_id()
    if dealer_id:
        context.setdefault("dealer_id", dealer_id)

    op = OperationContext(name, **context)
    logger.info(f"ENTER: {name}", extra=dict(op.context))

    try:
        yield op
    except BaseError as e:
        e.add_context(
            operation_name=name,
            operation_id=op.operation_id,
            operation_duration_ms=op.duration_ms,
        )
        # The error logged its own details when it was raised
        log = logger.warning if e.status_code < 500 else logger.error
        log(
            f"ERROR: {name} -> {e.error_code.value}: {e.message}",
            extra=op.log_extra(status="error", error_id=e.error_id, error_code=e.error_code.value),
        )
        raise
    except Exception as e:
        logger.exception(
            f"ERROR: {name} -> {type(e).__name__}: {e}",
            extra=op.log_extra(status="error", error_type=type(e).__name__),
        )
        raise

    logger.info(f"EXIT: {name}", extra=op.log_extra(status="success", **op.metrics))


def _loggable(value: Any) -> Any:
    """Argument value safe to put in a debug line."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict) and len(value) < _MAX_LOGGED_ITEMS:
        return {k: _loggable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)) and len(value) < _MAX_LOGGED_ITEMS:
        return [_loggable(v) for v in value]
    return type(value).__name__


def operation(name: Union[Optional[str], Callable] = None):
    """
    Trace a service method.

    Usable as ``@operation``, ``@operation()`` or ``@operation("name")``.
    Without a name the operation is called ``<module>.<Class>.<method>``.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):
            owner = type(args[0]).__name__ if args else None
            op_name = name
            if op_name is None:
                module = func.__module__.rsplit(".", 1)[-1]
                op_name = f"{module}.{owner}.{func.__name__}" if owner else f"{module}.{func.__name__}"

            logger = get_logger()
            logger.debug(
                f"{op_name} called",
                extra={
                    "call_args": [_loggable(a) for a in args[1:]],
                    "call_kwargs": {k: _loggable(v) for k, v in kwargs.items()},
                },
            )

            context = {"source_module": func.__module__}
            if owner:
                context["class"] = owner
            with traced(op_name, logger=logger, **context):
                return func(*args, **kwargs)

        return cast(F, wrapper)

    if callable(name):
        func, name = name, None
        return decorator(func)
    return decorator
