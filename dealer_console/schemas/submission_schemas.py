"""
Pydantic schemas for dealership join submissions.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..constants import SubmissionStatus
from .credential_schemas import CommitResult, StoreConfigRead

DEFAULT_REJECTION_REASON = "Application rejected by admin"


class JoinSubmissionCreate(BaseModel):
    """Data a dealership supplies when asking to join."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    dealership_name: str = Field(..., min_length=1, max_length=200)
    dealership_type: Optional[str] = Field(None, max_length=50)
    number_of_vehicles: Optional[int] = Field(None, ge=0)
    inquiry_type: Optional[str] = Field(None, max_length=50)
    message: Optional[str] = None
    preferred_contact: Optional[str] = Field(None, max_length=20)

    @field_validator("email")
    @classmethod
    def lower_case_email(cls, v):
        return v.lower()


class JoinSubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    dealership_name: str
    dealership_type: Optional[str] = None
    number_of_vehicles: Optional[int] = None
    inquiry_type: Optional[str] = None
    message: Optional[str] = None
    preferred_contact: Optional[str] = None
    status: SubmissionStatus
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class SubmissionStatusCounts(BaseModel):
    all: int = 0
    pending: int = 0
    reviewing: int = 0
    approved: int = 0
    rejected: int = 0


class SubmissionOverview(BaseModel):
    """Submissions list for the admin dashboard with counts and linked store configs."""

    submissions: List[JoinSubmissionRead] = Field(default_factory=list)
    counts: SubmissionStatusCounts = Field(default_factory=SubmissionStatusCounts)
    store_configs: Dict[str, StoreConfigRead] = Field(
        default_factory=dict, description="Keyed by submission id"
    )


class ApprovalResult(BaseModel):
    """Outcome of approving a join submission with a credential assignment."""

    submission: JoinSubmissionRead
    dealer_id: str
    dealer_created: bool
    credential: CommitResult


class RejectionResult(BaseModel):
    submission: JoinSubmissionRead
    rejection_reason: str = DEFAULT_REJECTION_REASON
