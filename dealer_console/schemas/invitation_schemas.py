"""
Invitation outcomes reported by the identity provider.
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..constants import InvitationStatus


class InvitationOutcome(BaseModel):
    """Result of asking the identity provider to invite a dealer."""

    status: InvitationStatus = Field(..., description="invited, user_exists, failed or accepted")
    invitation_id: Optional[str] = None
    invitation_url: Optional[str] = None
    email: Optional[str] = None
    error: Optional[str] = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status != InvitationStatus.FAILED
