"""
Advertisement-ID assignment rules for dealer credentials.

Stored credentials carry advertisement IDs in two shapes: the enhanced shape
(advertisement_id + additional_advertisement_ids) and the legacy shape
(primary_advertisement_id + advertisement_ids). Everything that has to
branch on the shape lives in reconcile(); the editing helpers work on a flat
EditableState and prepare_commit() produces the values written back to both
shapes.

All functions here are pure. Edits return a new EditableState and never
mutate their input.
"""

from typing import Any, List, Optional

from ..constants import AdvertisementIdSource
from ..exceptions import ErrorCode, ValidationError
from ..schemas.credential_schemas import (
    AdvertiserResolution,
    EditableState,
    PreparedCommit,
    ReconciledAdvertisementId,
    ReconciledCredential,
    StoredCredentialFields,
)


def _as_stored_fields(record: Any) -> StoredCredentialFields:
    if record is None:
        return StoredCredentialFields()
    if isinstance(record, StoredCredentialFields):
        return record
    return StoredCredentialFields.model_validate(record)


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def _check_index(state: EditableState, index: int) -> None:
    if not 0 <= index < len(state.ids):
        raise ValidationError(
            "index out of range",
            field="index",
            error_code=ErrorCode.INVALID_INDEX,
            index=index,
            size=len(state.ids),
        )


def reconcile(record: Any) -> ReconciledCredential:
    """
    Merge both stored shapes into one ordered, de-duplicated list of IDs.

    Precedence is enhanced primary, enhanced additional, legacy primary,
    legacy additional; the first occurrence of an ID wins. Only the enhanced
    primary is flagged as primary. When nothing is flagged, the first entry is
    the primary.

    Args:
        record: StoredCredentialFields, a store_config row, a dict of columns or None

    Returns:
        ReconciledCredential with blank values dropped and values trimmed
    """
    fields = _as_stored_fields(record)
    entries: List[ReconciledAdvertisementId] = []
    seen = set()

    def append(value: Optional[str], source: AdvertisementIdSource, is_primary: bool = False):
        cleaned = _clean(value)
        if not cleaned or cleaned in seen:
            return
        seen.add(cleaned)
        entries.append(ReconciledAdvertisementId(id=cleaned, source=source, is_primary=is_primary))

    append(fields.advertisement_id, AdvertisementIdSource.ENHANCED_PRIMARY, is_primary=True)
    for value in fields.additional_advertisement_ids:
        append(value, AdvertisementIdSource.ENHANCED_ADDITIONAL)
    append(fields.primary_advertisement_id, AdvertisementIdSource.LEGACY_PRIMARY)
    for value in fields.advertisement_ids_parsed:
        append(value, AdvertisementIdSource.LEGACY_ADDITIONAL)

    primary_id = next((entry.id for entry in entries if entry.is_primary), "")
    if not primary_id and entries:
        primary_id = entries[0].id

    return ReconciledCredential(entries=entries, primary_id=primary_id)


def build_editable_state(reconciled: Optional[ReconciledCredential]) -> EditableState:
    """Flatten a reconciled credential into edit slots; there is always at least one slot."""
    ids = list(reconciled.ids) if reconciled else []
    if not ids:
        ids = [""]
    primary_id = (reconciled.primary_id if reconciled else "") or ids[0]
    return EditableState(ids=ids, primary_id=primary_id)


def add_id(state: EditableState) -> EditableState:
    return EditableState(ids=[*state.ids, ""], primary_id=state.primary_id)


def remove_id(state: EditableState, index: int) -> EditableState:
    """
    Remove one slot.

    Removing the slot holding the primary clears the primary instead of
    promoting another ID; prepare_commit() falls back to the first valid ID.

    Raises:
        ValidationError: If only one slot is left or index is out of range
    """
    if len(state.ids) <= 1:
        raise ValidationError("cannot remove last slot", field="ids")
    _check_index(state, index)

    removed = state.ids[index]
    ids = state.ids[:index] + state.ids[index + 1 :]
    primary_id = "" if removed == state.primary_id else state.primary_id
    return EditableState(ids=ids, primary_id=primary_id)


def update_id(state: EditableState, index: int, new_value: str) -> EditableState:
    """Replace one slot; when the slot held the primary, the primary follows it."""
    _check_index(state, index)

    old_value = state.ids[index]
    ids = list(state.ids)
    ids[index] = new_value
    primary_id = new_value if old_value == state.primary_id else state.primary_id
    return EditableState(ids=ids, primary_id=primary_id)


def set_primary(state: EditableState, value: str) -> EditableState:
    """
    Mark ``value`` as the primary ID.

    Raises:
        ValidationError: If the trimmed value is not one of the non-blank slots
    """
    wanted = _clean(value)
    candidates = {_clean(slot) for slot in state.ids if _clean(slot)}
    if not wanted or wanted not in candidates:
        raise ValidationError("value not in id list", field="primary_id", value=value)
    return EditableState(ids=list(state.ids), primary_id=wanted)


def valid_ids(state: EditableState) -> List[str]:
    """Trimmed, non-blank slot values in order, with exact repeats collapsed."""
    result: List[str] = []
    for slot in state.ids:
        cleaned = _clean(slot)
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result


def prepare_commit(state: EditableState) -> PreparedCommit:
    """
    Compute the values a commit writes to both stored shapes.

    The chosen primary is kept when it is one of the valid IDs, otherwise the
    first valid ID becomes primary.
    """
    ids = valid_ids(state)
    chosen = _clean(state.primary_id)
    if chosen and chosen in ids:
        primary = chosen
    else:
        primary = ids[0] if ids else ""

    additional = list(ids)
    if primary in additional:
        additional.remove(primary)

    return PreparedCommit(valid_ids=ids, primary=primary, additional=additional)


def resolve_advertiser_id(record: Any) -> AdvertiserResolution:
    """Pick the single advertiser ID used for stock lookups and feed rows."""
    reconciled = reconcile(record)
    if not reconciled.entries:
        return AdvertiserResolution()

    first = reconciled.entries[0]
    return AdvertiserResolution(
        advertiser_id=first.id,
        source=first.source,
        all_available_ids=reconciled.ids,
    )


def is_using_legacy_fields_only(record: Any) -> bool:
    """True when only the legacy columns hold advertisement IDs."""
    fields = _as_stored_fields(record)
    has_enhanced = bool(_clean(fields.advertisement_id) or fields.additional_advertisement_ids)
    has_legacy = bool(_clean(fields.primary_advertisement_id) or fields.advertisement_ids_parsed)
    return has_legacy and not has_enhanced


def convert_legacy_to_enhanced(record: Any) -> dict:
    """Enhanced-shape column values for a record, used when migrating legacy rows."""
    ids = reconcile(record).ids
    if not ids:
        return {"advertisement_id": None, "additional_advertisement_ids": None}
    return {"advertisement_id": ids[0], "additional_advertisement_ids": ids[1:] or None}
