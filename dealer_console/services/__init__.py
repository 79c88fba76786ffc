"""Service layer for business logic."""

from .base_service import SessionManagedService
from .credential_service import CredentialService
from .dealer_logo_service import DealerLogoService
from .export_service import ExportService
from .invitation_service import ClerkIdentityProvider, IdentityProvider, InvitationService
from .submission_service import SubmissionService

__all__ = [
    "SessionManagedService",
    "ClerkIdentityProvider",
    "CredentialService",
    "DealerLogoService",
    "ExportService",
    "IdentityProvider",
    "InvitationService",
    "SubmissionService",
]
