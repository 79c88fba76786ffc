"""
Generic CRUD helpers shared by the persistence utilities.

These work with any SQLAlchemy model. Connectivity failures are raised as
TransportError so read paths can decide whether to fall back; any other
database failure becomes a RepositoryError.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import BaseError, RepositoryError, TransportError, duplicate, not_found
from ..utils.logger import get_logger

T = TypeVar("T")


def wrap_db_error(action: str, model_class: type, error: Exception, **context) -> BaseError:
    """Translate a database exception into the console's error hierarchy."""
    if isinstance(error, BaseError):
        return error
    message = f"Failed to {action} {model_class.__name__}: {str(error)}"
    if isinstance(error, (OperationalError, InterfaceError)):
        return TransportError(message, cause=error, model=model_class.__name__, **context)
    if isinstance(error, IntegrityError):
        return duplicate(model_class.__name__, cause=error, **context)
    return RepositoryError(message, cause=error, model=model_class.__name__, **context)


def _apply_filters(query, model_class, filters: Optional[Dict[str, Any]], match_none: bool = False):
    """
    Narrow ``query`` by column equality.

    A None value is skipped unless ``match_none`` is set, in which case it
    matches NULL columns only.
    """
    if filters:
        for key, value in filters.items():
            if not hasattr(model_class, key):
                continue
            column = getattr(model_class, key)
            if value is not None:
                query = query.filter(column == value)
            elif match_none:
                query = query.filter(column.is_(None))
    return query


def create_record(session: Session, model_class: Type[T], data: Dict[str, Any]) -> T:
    """
    Generic create operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        data: Column values

    Returns:
        Created record instance

    Raises:
        TransportError: If the database is unreachable
        RepositoryError: If creation fails
    """
    logger = get_logger()

    try:
        now = datetime.now(timezone.utc)
        if hasattr(model_class, "created_at"):
            data.setdefault("created_at", now)
        if hasattr(model_class, "updated_at"):
            data.setdefault("updated_at", now)

        record = model_class(**data)
        session.add(record)
        session.commit()

        logger.info(
            f"Created {model_class.__name__}",
            extra={"model": model_class.__name__, "record_id": getattr(record, "id", None)},
        )
        return record

    except SQLAlchemyError as e:
        session.rollback()
        raise wrap_db_error("create", model_class, e) from e


def get_record(session: Session, model_class: Type[T], filters: Dict[str, Any]) -> Optional[T]:
    """Return the first record matching every one of ``filters`` or None."""
    try:
        query = _apply_filters(session.query(model_class), model_class, filters, match_none=True)
        return query.first()
    except SQLAlchemyError as e:
        raise wrap_db_error("read", model_class, e, filters=str(filters)) from e


def get_record_by_id(session: Session, model_class: Type[T], record_id: str) -> Optional[T]:
    return get_record(session, model_class, {"id": record_id})


def get_records_in(
    session: Session, model_class: Type[T], column: str, values: Iterable[Any]
) -> List[T]:
    """Fetch every record whose ``column`` is one of ``values`` in a single query."""
    values = list(values)
    if not values:
        return []
    try:
        return session.query(model_class).filter(getattr(model_class, column).in_(values)).all()
    except SQLAlchemyError as e:
        raise wrap_db_error("bulk read", model_class, e, column=column, count=len(values)) from e


def update_record(
    session: Session,
    model_class: Type[T],
    record_id: str,
    data: Dict[str, Any],
    include_none: bool = False,
) -> T:
    """
    Generic update operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        record_id: Record ID to update
        data: Column values to set
        include_none: Write None values instead of skipping them

    Returns:
        Updated record instance

    Raises:
        NotFoundError: If no record has ``record_id``
        TransportError: If the database is unreachable
        RepositoryError: If the update fails
    """
    logger = get_logger()

    record = get_record_by_id(session, model_class, record_id)
    if not record:
        raise not_found(model_class.__name__, record_id=record_id)

    try:
        for key, value in data.items():
            if hasattr(record, key) and (include_none or value is not None):
                setattr(record, key, value)

        if hasattr(record, "updated_at"):
            record.updated_at = datetime.now(timezone.utc)

        session.commit()

        logger.info(
            f"Updated {model_class.__name__}",
            extra={"model": model_class.__name__, "record_id": record_id},
        )
        return record

    except SQLAlchemyError as e:
        session.rollback()
        raise wrap_db_error("update", model_class, e, record_id=record_id) from e


def list_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
) -> List[T]:
    """
    Generic list operation for any model.

    Newest first by created_at unless ``order_by`` names a column.
    """
    query = _apply_filters(session.query(model_class), model_class, filters)

    if order_by and hasattr(model_class, order_by):
        query = query.order_by(getattr(model_class, order_by))
    elif hasattr(model_class, "created_at"):
        query = query.order_by(model_class.created_at.desc())  # type: ignore[attr-defined]

    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)

    try:
        return query.all()
    except SQLAlchemyError as e:
        raise wrap_db_error("list", model_class, e) from e
