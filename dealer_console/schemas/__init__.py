"""
Validation schemas package.

Pydantic models for the data passed into and returned from the console
services: store credentials, join submissions, dealer logos, invitations
and feed exports.
"""

from .credential_schemas import (
    AdvertiserResolution,
    CommitResult,
    CredentialExtras,
    EditableState,
    PreparedCommit,
    ReconciledAdvertisementId,
    ReconciledCredential,
    RevokeResult,
    StoreConfigRead,
    StoredCredentialFields,
)
from .export_schemas import DealerDetails, ExportArchive, ExportRequest, ExportStats
from .invitation_schemas import InvitationOutcome
from .logo_schemas import DealerLogoAssign, DealerLogoListItem, DealerLogoRead, LogoAssignResult
from .submission_schemas import (
    ApprovalResult,
    JoinSubmissionCreate,
    JoinSubmissionRead,
    RejectionResult,
    SubmissionOverview,
    SubmissionStatusCounts,
)

__all__ = [
    "AdvertiserResolution",
    "CommitResult",
    "CredentialExtras",
    "EditableState",
    "PreparedCommit",
    "ReconciledAdvertisementId",
    "ReconciledCredential",
    "RevokeResult",
    "StoreConfigRead",
    "StoredCredentialFields",
    "DealerDetails",
    "ExportArchive",
    "ExportRequest",
    "ExportStats",
    "InvitationOutcome",
    "DealerLogoAssign",
    "DealerLogoListItem",
    "DealerLogoRead",
    "LogoAssignResult",
    "ApprovalResult",
    "JoinSubmissionCreate",
    "JoinSubmissionRead",
    "RejectionResult",
    "SubmissionOverview",
    "SubmissionStatusCounts",
]
