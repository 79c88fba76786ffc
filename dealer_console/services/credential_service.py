"""
Credential commits, revokes and reads.

The assignment rules themselves live in processing.credential_assignment;
this service does the I/O around them: validating the target dealer,
dual-writing both stored shapes, inviting new dealers and loading
credentials in bulk.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from ..context.operation_context import operation
from ..db.db_dealer_models import Dealer
from ..exceptions import BaseError, TransportError, not_found
from ..processing.credential_assignment import build_editable_state, prepare_commit, reconcile
from ..schemas.credential_schemas import (
    CommitResult,
    CredentialExtras,
    EditableState,
    ReconciledCredential,
    RevokeResult,
    StoreConfigRead,
)
from ..utils.bulk_loading import load_many
from ..utils.crud_helpers import get_record_by_id
from ..utils.store_config_utils import (
    clear_credential,
    get_credential,
    get_credentials_bulk,
    write_credential,
)
from .base_service import SessionManagedService
from .invitation_service import InvitationService


class CredentialService(SessionManagedService):
    """Writes and reads dealer advertising credentials."""

    def __init__(
        self,
        session: Optional[Session] = None,
        invitation_service: Optional[InvitationService] = None,
        **kwargs,
    ):
        super().__init__(session=session, **kwargs)
        self._invitation_service = invitation_service
        # Fallback loads run on worker threads that share this session
        self._session_lock = threading.Lock()

    @property
    def invitation_service(self) -> InvitationService:
        if self._invitation_service is None:
            self._invitation_service = InvitationService(session=self.session, config=self.config)
        return self._invitation_service

    @operation()
    def commit(
        self,
        state: EditableState,
        dealer_id: str,
        extras: Optional[CredentialExtras] = None,
        assigned_by: Optional[str] = None,
        join_submission_id: Optional[str] = None,
    ) -> CommitResult:
        """
        Save an edited credential for a dealer.

        Both the enhanced and the legacy columns are written. When the
        credential did not exist before, the dealer is invited; an invitation
        failure is reported on the result and never undoes the write.

        Args:
            state: Edited ID slots and chosen primary
            dealer_id: Dealer the credential belongs to
            extras: Integration ID and company details, blanks clear them
            assigned_by: Admin making the change
            join_submission_id: Join submission this assignment came from

        Raises:
            NotFoundError: If the dealer does not exist
            TransportError: If the write could not reach the database
        """
        extras = extras or CredentialExtras()

        dealer = get_record_by_id(self.session, Dealer, dealer_id)
        if not dealer:
            raise not_found("Dealer", dealer_id=dealer_id)

        prepared = prepare_commit(state)

        fields = {
            **prepared.as_columns(),
            **extras.as_columns(),
            "assigned_by": assigned_by,
            "assigned_at": datetime.now(timezone.utc),
            "revoked_at": None,
        }
        for optional_column in ("email", "store_name", "store_type"):
            value = getattr(extras, optional_column)
            if value:
                fields[optional_column] = value
        if join_submission_id:
            fields["join_submission_id"] = join_submission_id

        existing = get_credential(self.session, dealer_id)
        if existing is None:
            fields.setdefault("email", dealer.email)
            fields.setdefault("store_name", dealer.name)
        elif assigned_by is None:
            fields["assigned_by"] = existing.assigned_by

        stored, created = write_credential(self.session, dealer_id, fields)

        self.logger.info(
            "Credential committed",
            extra={
                "dealer_id": dealer_id,
                "store_config_id": stored.id,
                "created": created,
                "id_count": len(prepared.valid_ids),
            },
        )

        result = CommitResult(
            dealer_id=dealer_id,
            store_config_id=stored.id,
            created=created,
            primary_advertisement_id=prepared.primary,
            additional_advertisement_ids=prepared.additional,
        )

        if created and self.config.features.send_invitations_on_create:
            try:
                result.invitation = self.invitation_service.send_for_credential(stored)
                if not result.invitation.succeeded:
                    result.invitation_warning = result.invitation.error or "Invitation failed"
            except BaseError as e:
                result.invitation_warning = e.message

        result.message = self._commit_message(result)
        return result

    @staticmethod
    def _commit_message(result: CommitResult) -> str:
        saved = "Credentials created" if result.created else "Credentials updated"
        if result.invitation_warning:
            return f"{saved}, invitation failed: {result.invitation_warning}"
        if result.invitation is not None:
            return f"{saved}, {result.invitation.message or 'invitation sent'}"
        return saved

    @operation()
    def revoke(self, dealer_id: str) -> RevokeResult:
        """
        Remove a dealer's API access.

        The row is kept for audit with every advertisement ID and the
        integration ID cleared. Revoking an already revoked credential is a
        successful no-op.

        Raises:
            NotFoundError: If the dealer has no credential row
        """
        existing = get_credential(self.session, dealer_id)
        if existing is None:
            raise not_found("StoreConfig", dealer_id=dealer_id)

        if existing.is_revoked and not reconcile(existing).entries and not existing.integration_id:
            return RevokeResult(
                dealer_id=dealer_id,
                already_revoked=True,
                revoked_at=existing.revoked_at,
                message="Credentials were already revoked",
            )

        cleared = clear_credential(self.session, dealer_id)
        self.logger.info("Credential revoked", extra={"dealer_id": dealer_id})
        return RevokeResult(
            dealer_id=dealer_id,
            revoked_at=cleared.revoked_at,
            message="Credentials revoked",
        )

    def get_credential(self, dealer_id: str) -> Optional[StoreConfigRead]:
        return get_credential(self.session, dealer_id)

    def get_reconciled(self, dealer_id: str) -> ReconciledCredential:
        """Reconciled view of a dealer's IDs; empty when no credential exists."""
        return reconcile(get_credential(self.session, dealer_id))

    def get_editable_state(self, dealer_id: str) -> EditableState:
        return build_editable_state(self.get_reconciled(dealer_id))

    def _get_credentials_bulk(self, dealer_ids) -> Dict[str, StoreConfigRead]:
        try:
            return get_credentials_bulk(self.session, dealer_ids)
        except TransportError:
            # The failed query may have left the transaction unusable
            self.session.rollback()
            raise

    def _get_credential_locked(self, dealer_id: str) -> Optional[StoreConfigRead]:
        with self._session_lock:
            return get_credential(self.session, dealer_id)

    @operation()
    def get_credentials_for_dealers(self, dealer_ids: Iterable[str]) -> Dict[str, StoreConfigRead]:
        """
        Credentials for many dealers, bulk first, per dealer if the bulk query fails.

        Dealers without a credential are absent from the result.
        """
        return load_many(
            dealer_ids,
            bulk_fetch=self._get_credentials_bulk,
            item_fetch=self._get_credential_locked,
            fallback=self.config.features.bulk_load_fallback,
        )
