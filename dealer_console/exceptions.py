"""
Error hierarchy for the dealer console.

Every error derives from BaseError. An error carries a code, an HTTP status,
an id and free-form context, logs itself when it is created and renders to
a dict the API layer can return as JSON. Subclasses fix their code and
status as class attributes; callers may still override the code.
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

_correlation = threading.local()


class ErrorCode(str, Enum):
    """Codes returned to API clients, grouped by leading digit."""

    # 1xxx system
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONFIGURATION_ERROR = "1003"

    # 2xxx input
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    INVALID_INDEX = "2003"

    # 3xxx resources
    NOT_FOUND = "3000"
    DUPLICATE = "3001"

    # 4xxx workflow
    INVALID_STATE_TRANSITION = "4001"

    # 5xxx upstream
    INVITATION_FAILED = "5003"
    TRANSPORT_ERROR = "5004"


# Context keys never echoed back to API clients
_PRIVATE_CONTEXT = ("cause", "error_id", "correlation_id")


class BaseError(Exception):
    """Console error with code, status, context and cause."""

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    # Recoverable upstream failures log at warning level
    log_as_warning: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Args:
            message: Human-readable error message
            error_code: Overrides the class default code
            status_code: Overrides the class HTTP status
            cause: Exception this error wraps
            **context: Extra details, logged and returned to clients
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())

        self.context: Dict[str, Any] = dict(context)
        self.context["error_id"] = self.error_id
        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id
        if cause is not None:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

    @property
    def public_context(self) -> Dict[str, Any]:
        return {k: v for k, v in self.context.items() if k not in _PRIVATE_CONTEXT}

    def _log_error(self) -> None:
        # Lazy import, utils.logger imports this module
        from .utils.logger import get_logger

        logger = get_logger()
        details = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "timestamp": self.timestamp,
            "context": self.public_context,
        }
        if "correlation_id" in self.context:
            details["correlation_id"] = self.context["correlation_id"]

        label = f"{type(self).__name__} {self.error_code.value}: {self.message}"
        if self.status_code >= 500 and not self.log_as_warning:
            logger.error(label, extra=details, exc_info=self.cause)
        elif self.status_code >= 400 or self.log_as_warning:
            logger.warning(label, extra=details)
        else:
            logger.info(label, extra=details)

    def to_dict(self, include_cause: bool = False, include_traceback: bool = False) -> Dict[str, Any]:
        """
        JSON-ready body for an API error response.

        The cause is only included on request, its traceback only when both
        flags are set.
        """
        body: Dict[str, Any] = {
            "id": self.error_id,
            "code": self.error_code.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": self.public_context,
        }
        if "correlation_id" in self.context:
            body["correlation_id"] = self.context["correlation_id"]

        cause = self.context.get("cause")
        if include_cause and cause:
            body["cause"] = {"type": cause["type"], "message": cause["message"]}
            if include_traceback:
                body["cause"]["traceback"] = cause["traceback"]

        return {"error": body}

    def add_context(self, **kwargs: Any) -> "BaseError":
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """This error followed by each wrapped cause."""
        chain: List[Exception] = []
        current: Optional[Exception] = self
        while current is not None:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


class RepositoryError(BaseError):
    """A database operation failed."""

    default_code = ErrorCode.DATABASE_ERROR


class ServiceError(BaseError):
    """Unexpected failure inside a service or the database setup."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        if operation:
            kwargs["operation"] = operation
        super().__init__(message, **kwargs)


class ValidationError(BaseError):
    """Invalid input or an illegal edit, raised before any write."""

    default_code = ErrorCode.VALIDATION_FAILED
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        if field:
            kwargs["field"] = field
        super().__init__(message, **kwargs)


class NotFoundError(RepositoryError):
    """A dealer, credential, submission or logo does not exist."""

    default_code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, message: str, resource_type: Optional[str] = None, **kwargs):
        if resource_type:
            kwargs["resource_type"] = resource_type
        super().__init__(message, **kwargs)


class TransportError(RepositoryError):
    """The database could not be reached or dropped the connection mid-request."""

    default_code = ErrorCode.TRANSPORT_ERROR
    status_code = 503


class InvitationError(BaseError):
    """
    The identity provider rejected or failed an invitation.

    Never fatal to a credential commit: callers attach it to the result as a
    warning, so it is logged at warning level.
    """

    default_code = ErrorCode.INVITATION_FAILED
    status_code = 502
    log_as_warning = True

    def __init__(self, message: str, email: Optional[str] = None, **kwargs):
        if email:
            kwargs["email"] = email
        kwargs["service_name"] = "identity_provider"
        super().__init__(message, **kwargs)


def _describe(prefix: str, identifiers: Dict[str, Any]) -> str:
    if not identifiers:
        return prefix
    return f"{prefix}: " + ", ".join(f"{k}={v}" for k, v in identifiers.items())


def not_found(resource_type: str, cause: Optional[Exception] = None, **identifiers) -> NotFoundError:
    """NotFoundError whose message names the resource and how it was looked up."""
    return NotFoundError(
        _describe(f"{resource_type} not found", identifiers),
        resource_type=resource_type,
        cause=cause,
        **identifiers,
    )


def duplicate(resource_type: str, cause: Optional[Exception] = None, **identifiers) -> RepositoryError:
    """409 for a write that broke a uniqueness constraint."""
    return RepositoryError(
        _describe(f"Duplicate {resource_type}", identifiers),
        error_code=ErrorCode.DUPLICATE,
        status_code=409,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


def set_correlation_id(correlation_id: str) -> None:
    _correlation.value = correlation_id


def get_correlation_id() -> Optional[str]:
    return getattr(_correlation, "value", None)


def clear_correlation_id() -> None:
    _correlation.__dict__.pop("value", None)
