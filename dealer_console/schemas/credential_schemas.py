"""
Pydantic schemas for dealer credentials.

Stored records are read through StoredCredentialFields, which normalizes the
legacy encodings (JSON strings holding lists, an enhanced primary holding a
JSON array) before the assignment rules ever see them.
"""

import json
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..constants import AdvertisementIdSource, InvitationStatus
from .invitation_schemas import InvitationOutcome


def _id_text(item: Any) -> str:
    """Text of one stored ID; numeric IDs written by older clients are kept."""
    if isinstance(item, bool):
        return ""
    if isinstance(item, (str, int)):
        return str(item).strip()
    return ""


def _parse_id_list(value: Any) -> List[str]:
    """Coerce a stored list column (list, JSON string or scalar) into a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                value = json.loads(text)
            except ValueError:
                return []
        else:
            return [text]
    if isinstance(value, (list, tuple)):
        return [_id_text(item) for item in value if _id_text(item)]
    return [_id_text(value)] if _id_text(value) else []


class StoredCredentialFields(BaseModel):
    """The four advertisement-ID columns of a stored credential, normalized."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    advertisement_id: Optional[str] = Field(None, description="Enhanced primary")
    additional_advertisement_ids: List[str] = Field(
        default_factory=list, description="Enhanced additional IDs"
    )
    primary_advertisement_id: Optional[str] = Field(None, description="Legacy primary")
    advertisement_ids_parsed: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("advertisement_ids_parsed", "advertisement_ids"),
        description="Legacy ID list",
    )

    @field_validator("advertisement_id", mode="before")
    @classmethod
    def unwrap_array_primary(cls, v):
        """An enhanced primary stored as a JSON array contributes its first element."""
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("[") and text.endswith("]"):
                parsed = _parse_id_list(text)
                return parsed[0] if parsed else None
        return v

    @field_validator("additional_advertisement_ids", "advertisement_ids_parsed", mode="before")
    @classmethod
    def parse_id_list(cls, v):
        return _parse_id_list(v)


class StoreConfigRead(StoredCredentialFields):
    """Full read view of a store_config row."""

    id: str
    dealer_id: str
    join_submission_id: Optional[str] = None
    email: Optional[str] = None
    store_name: Optional[str] = None
    store_type: Optional[str] = None
    integration_id: Optional[str] = None
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    invitation_status: InvitationStatus = InvitationStatus.NONE
    invitation_id: Optional[str] = None
    assigned_by: Optional[str] = None
    assigned_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None


class ReconciledAdvertisementId(BaseModel):
    """One advertisement ID and the stored column it was taken from."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: AdvertisementIdSource
    is_primary: bool = False


class ReconciledCredential(BaseModel):
    """Single de-duplicated, source-tagged view of a dealer's advertisement IDs."""

    model_config = ConfigDict(frozen=True)

    entries: List[ReconciledAdvertisementId] = Field(default_factory=list)
    primary_id: str = ""

    @property
    def ids(self) -> List[str]:
        return [entry.id for entry in self.entries]

    @property
    def additional_ids(self) -> List[str]:
        return [entry.id for entry in self.entries if entry.id != self.primary_id]


class EditableState(BaseModel):
    """Flat list of ID slots being edited, plus the value marked primary."""

    ids: List[str] = Field(default_factory=lambda: [""])
    primary_id: str = ""


class AdvertiserResolution(BaseModel):
    """Single advertiser ID chosen for listing lookups."""

    advertiser_id: Optional[str] = None
    source: AdvertisementIdSource = AdvertisementIdSource.NONE
    all_available_ids: List[str] = Field(default_factory=list)


class CredentialExtras(BaseModel):
    """Optional fields written alongside the advertisement IDs. Empty clears."""

    model_config = ConfigDict(str_strip_whitespace=True)

    integration_id: Optional[str] = None
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    email: Optional[str] = None
    store_name: Optional[str] = None
    store_type: Optional[str] = None

    def as_columns(self) -> dict:
        """Columns always written on commit; blanks become NULL."""
        return {
            "integration_id": self.integration_id or None,
            "company_name": self.company_name or None,
            "company_logo_url": self.company_logo_url or None,
        }


class PreparedCommit(BaseModel):
    """Validated IDs ready to be dual-written in both stored shapes."""

    valid_ids: List[str] = Field(default_factory=list)
    primary: str = ""
    additional: List[str] = Field(default_factory=list)

    def as_columns(self) -> dict:
        return {
            "primary_advertisement_id": self.primary or None,
            "advertisement_ids": list(self.valid_ids),
            "advertisement_id": self.primary or None,
            "additional_advertisement_ids": list(self.additional),
        }


class CommitResult(BaseModel):
    """
    Outcome of a credential commit.

    credential_saved and the invitation outcome are reported separately so a
    saved credential with a failed invitation is never shown as a plain
    success or a plain failure.
    """

    dealer_id: str
    store_config_id: str
    created: bool
    credential_saved: bool = True
    primary_advertisement_id: str = ""
    additional_advertisement_ids: List[str] = Field(default_factory=list)
    invitation: Optional[InvitationOutcome] = None
    invitation_warning: Optional[str] = None
    message: str = ""


class RevokeResult(BaseModel):
    dealer_id: str
    revoked: bool = True
    already_revoked: bool = False
    revoked_at: Optional[datetime] = None
    message: str = ""
