"""
Account invitations through the identity provider.

IdentityProvider is the seam the rest of the console talks to;
ClerkIdentityProvider implements it over the Clerk backend REST API.
InvitationService records what the provider reported on the dealer's
store_config row.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from sqlalchemy.orm import Session

from ..config import IdentityProviderConfig, get_config
from ..constants import DealerRole, InvitationStatus
from ..context.operation_context import operation
from ..db.db_submission_models import JoinSubmission
from ..exceptions import BaseError, InvitationError, not_found
from ..schemas.credential_schemas import StoreConfigRead
from ..schemas.invitation_schemas import InvitationOutcome
from ..utils.crud_helpers import get_record_by_id
from ..utils.email_utils import sanitize_email
from ..utils.logger import get_logger
from ..utils.store_config_utils import get_credential_by_submission_id, record_invitation
from .base_service import SessionManagedService


class IdentityProvider(ABC):
    """Sends account invitations to dealers."""

    @abstractmethod
    def send_invitation(
        self, email: str, dealer_id: str, store_config_id: Optional[str] = None
    ) -> InvitationOutcome:
        """
        Invite ``email`` to create an account.

        Returns:
            Outcome with status invited or user_exists

        Raises:
            InvitationError: If the provider could not be reached or refused the request
            ValidationError: If the email address is unusable
        """


def _error_details(response: Optional[requests.Response], fallback: str) -> str:
    """Pull a readable message out of a Clerk error response."""
    if response is None:
        return fallback
    try:
        body = response.json()
    except ValueError:
        return response.text or fallback
    if isinstance(body, dict):
        errors = body.get("errors")
        if errors:
            return ", ".join(
                str(e.get("long_message") or e.get("message") or e) if isinstance(e, dict) else str(e)
                for e in errors
            )
        if body.get("message"):
            return str(body["message"])
    return fallback


class ClerkIdentityProvider(IdentityProvider):
    """IdentityProvider backed by the Clerk backend API."""

    def __init__(
        self,
        config: Optional[IdentityProviderConfig] = None,
        http: Optional[requests.Session] = None,
    ):
        self.config = config or get_config().identity
        self.logger = get_logger()
        self.http = http or requests.Session()
        self.http.headers.update(
            {
                "Authorization": f"Bearer {self.config.secret_key}",
                "Content-Type": "application/json",
            }
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.config.api_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = self.http.request(
                method, url, timeout=self.config.request_timeout, **kwargs
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            details = _error_details(e.response, str(e))
            raise InvitationError(
                f"Clerk API Error: {details}",
                cause=e,
                status=e.response.status_code if e.response is not None else None,
                path=path,
            ) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise InvitationError(f"Clerk API Error: {str(e)}", cause=e, path=path) from e

    @staticmethod
    def _as_list(payload: Any) -> List[Dict[str, Any]]:
        # List endpoints return either a bare array or {"data": [...]}
        if isinstance(payload, dict):
            payload = payload.get("data") or []
        return payload if isinstance(payload, list) else []

    def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        users = self._as_list(
            self._request("GET", "/users", params={"email_address": [email], "limit": 1})
        )
        return users[0] if users else None

    def find_pending_invitation(self, email: str) -> Optional[Dict[str, Any]]:
        invitations = self._as_list(
            self._request("GET", "/invitations", params={"status": "pending"})
        )
        for invitation in invitations:
            if invitation.get("email_address") == email and invitation.get("status") == "pending":
                return invitation
        return None

    def create_invitation(self, email: str, store_config_id: Optional[str]) -> Dict[str, Any]:
        metadata = {"role": DealerRole.STORE_OWNER.value}
        if store_config_id:
            metadata["store_config_id"] = str(store_config_id)
        return self._request(
            "POST",
            "/invitations",
            json={
                "email_address": email,
                "redirect_url": self.config.redirect_url,
                "public_metadata": metadata,
            },
        )

    def send_invitation(
        self, email: str, dealer_id: str, store_config_id: Optional[str] = None
    ) -> InvitationOutcome:
        sanitized = sanitize_email(email)

        if not self.config.secret_key:
            raise InvitationError("CLERK_SECRET_KEY is not set", email=sanitized)

        try:
            if self.find_user(sanitized):
                return InvitationOutcome(
                    status=InvitationStatus.USER_EXISTS,
                    email=sanitized,
                    message="User already exists in the system. They can sign in directly.",
                )

            pending = self.find_pending_invitation(sanitized)
            if pending:
                return InvitationOutcome(
                    status=InvitationStatus.INVITED,
                    invitation_id=pending.get("id"),
                    invitation_url=pending.get("url"),
                    email=sanitized,
                    message="Invitation already exists and is pending",
                )
        except InvitationError as e:
            # Lookups are best effort; creating the invitation is what matters
            self.logger.warning(
                "Could not check existing users or invitations, creating a new invitation",
                extra={"dealer_id": dealer_id, "error_id": e.error_id},
            )

        invitation = self.create_invitation(sanitized, store_config_id)
        invitation_id = invitation.get("id")
        invitation_url = invitation.get("url") or (
            f"{self.config.redirect_url}?__clerk_invitation_token={invitation_id}"
        )

        self.logger.info(
            "Invitation created",
            extra={"dealer_id": dealer_id, "invitation_id": invitation_id},
        )
        return InvitationOutcome(
            status=InvitationStatus.INVITED,
            invitation_id=invitation_id,
            invitation_url=invitation_url,
            email=sanitized,
            message="Invitation sent",
        )


class InvitationService(SessionManagedService):
    """Sends invitations and keeps the credential's invitation state current."""

    def __init__(
        self,
        session: Optional[Session] = None,
        provider: Optional[IdentityProvider] = None,
        **kwargs,
    ):
        super().__init__(session=session, **kwargs)
        self.provider = provider or ClerkIdentityProvider(self.config.identity)

    @operation()
    def send_for_credential(
        self, store_config: StoreConfigRead, email: Optional[str] = None
    ) -> InvitationOutcome:
        """
        Invite the owner of a credential and record the outcome on it.

        Provider failures never raise; they come back as a failed outcome.
        """
        target = email or store_config.email
        try:
            if not target:
                raise InvitationError(
                    "No email address on record for this dealer",
                    dealer_id=store_config.dealer_id,
                )
            outcome = self.provider.send_invitation(
                target, store_config.dealer_id, store_config_id=store_config.id
            )
        except BaseError as e:
            outcome = InvitationOutcome(
                status=InvitationStatus.FAILED,
                email=target,
                error=e.message,
                message="Invitation failed",
            )

        record_invitation(
            self.session,
            store_config.id,
            outcome.status,
            invitation_id=outcome.invitation_id,
            email=outcome.email if outcome.succeeded else None,
        )

        self.logger.info(
            "Invitation outcome recorded",
            extra={
                "dealer_id": store_config.dealer_id,
                "store_config_id": store_config.id,
                "status": outcome.status.value,
            },
        )
        return outcome

    @operation()
    def resend_invitation(self, submission_id: str) -> InvitationOutcome:
        """
        Re-send the invitation for an approved join submission.

        Already accepted invitations are left alone, and a pending invitation
        is returned as-is instead of creating another one.

        Raises:
            NotFoundError: If the submission or its store config does not exist
        """
        submission = get_record_by_id(self.session, JoinSubmission, submission_id)
        if not submission:
            raise not_found("JoinSubmission", submission_id=submission_id)

        store_config = get_credential_by_submission_id(self.session, submission_id)
        if not store_config:
            raise not_found("StoreConfig", join_submission_id=submission_id)

        if store_config.invitation_status == InvitationStatus.ACCEPTED:
            return InvitationOutcome(
                status=InvitationStatus.ACCEPTED,
                invitation_id=store_config.invitation_id,
                email=store_config.email,
                message="Invitation already accepted",
            )

        if store_config.invitation_status == InvitationStatus.INVITED and store_config.invitation_id:
            return InvitationOutcome(
                status=InvitationStatus.INVITED,
                invitation_id=store_config.invitation_id,
                email=store_config.email,
                message="Invitation already exists and is pending",
            )

        return self.send_for_credential(store_config, email=store_config.email or submission.email)
