"""
Credential persistence built on the generic CRUD helpers.

A dealer's credential is its store_config row. Reads return StoreConfigRead
schemas with the legacy list encodings already normalized.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from ..constants import InvitationStatus
from ..db.db_store_config_models import StoreConfig
from ..exceptions import not_found
from ..schemas.credential_schemas import StoreConfigRead
from .crud_helpers import create_record, get_record, get_records_in, update_record

# Columns a revoke clears so that the row no longer grants access
REVOKED_COLUMNS = (
    "advertisement_id",
    "additional_advertisement_ids",
    "primary_advertisement_id",
    "advertisement_ids",
    "integration_id",
)


def _to_read(record: Optional[StoreConfig]) -> Optional[StoreConfigRead]:
    return StoreConfigRead.model_validate(record) if record is not None else None


def get_credential(session: Session, dealer_id: str) -> Optional[StoreConfigRead]:
    """Credential for a dealer, or None when the dealer has no API access configured."""
    return _to_read(get_record(session, StoreConfig, {"dealer_id": dealer_id}))


def get_credentials_bulk(session: Session, dealer_ids: Iterable[str]) -> Dict[str, StoreConfigRead]:
    """
    Credentials for many dealers in one query.

    Dealers without a credential are absent from the mapping.

    Raises:
        TransportError: If the query itself fails
    """
    rows = get_records_in(session, StoreConfig, "dealer_id", set(dealer_ids))
    return {row.dealer_id: StoreConfigRead.model_validate(row) for row in rows}


def get_credential_by_submission_id(
    session: Session, submission_id: str
) -> Optional[StoreConfigRead]:
    return _to_read(get_record(session, StoreConfig, {"join_submission_id": submission_id}))


def get_credentials_by_submission_ids(
    session: Session, submission_ids: Iterable[str]
) -> Dict[str, StoreConfigRead]:
    """Credentials keyed by the join submission that created them."""
    rows = get_records_in(session, StoreConfig, "join_submission_id", set(submission_ids))
    return {row.join_submission_id: StoreConfigRead.model_validate(row) for row in rows}


def write_credential(
    session: Session, dealer_id: str, fields: Dict[str, Any]
) -> Tuple[StoreConfigRead, bool]:
    """
    Upsert the credential for a dealer.

    dealer_id is only ever set on insert. None values in ``fields`` are
    written, so callers clear a column by passing None.

    Returns:
        The stored credential and True when a new row was created
    """
    data = {key: value for key, value in fields.items() if key not in ("id", "dealer_id")}

    existing = get_record(session, StoreConfig, {"dealer_id": dealer_id})
    if existing:
        updated = update_record(session, StoreConfig, existing.id, data, include_none=True)
        return StoreConfigRead.model_validate(updated), False

    data["dealer_id"] = dealer_id
    data.setdefault("invitation_status", InvitationStatus.NONE.value)
    created = create_record(session, StoreConfig, data)
    return StoreConfigRead.model_validate(created), True


def clear_credential(
    session: Session, dealer_id: str, revoked_at: Optional[datetime] = None
) -> StoreConfigRead:
    """
    Clear every advertisement ID column and the integration ID, keeping the row for audit.

    Raises:
        NotFoundError: If the dealer has no credential row
    """
    existing = get_record(session, StoreConfig, {"dealer_id": dealer_id})
    if not existing:
        raise not_found("StoreConfig", dealer_id=dealer_id)

    data: Dict[str, Any] = {column: None for column in REVOKED_COLUMNS}
    data["revoked_at"] = revoked_at or datetime.now(timezone.utc)
    updated = update_record(session, StoreConfig, existing.id, data, include_none=True)
    return StoreConfigRead.model_validate(updated)


def record_invitation(
    session: Session,
    store_config_id: str,
    status: InvitationStatus,
    invitation_id: Optional[str] = None,
    email: Optional[str] = None,
) -> StoreConfigRead:
    """Persist the identity-provider state of a credential's invitation."""
    data: Dict[str, Any] = {"invitation_status": status.value}
    if invitation_id:
        data["invitation_id"] = invitation_id
    if email:
        data["email"] = email
    updated = update_record(session, StoreConfig, store_config_id, data)
    return StoreConfigRead.model_validate(updated)
