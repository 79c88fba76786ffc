"""
Join submission workflow for the admin console.

Covers intake, the dashboard overview, status changes, rejection and
approval. Approval creates the dealer account when needed and commits the
credential through CredentialService.
"""

import threading
from collections import Counter
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..constants import DealerRole, SubmissionStatus
from ..context.operation_context import operation
from ..db.db_dealer_models import Dealer
from ..db.db_submission_models import JoinSubmission
from ..exceptions import ErrorCode, TransportError, ValidationError, not_found
from ..schemas.credential_schemas import CredentialExtras, EditableState, StoreConfigRead
from ..schemas.submission_schemas import (
    DEFAULT_REJECTION_REASON,
    ApprovalResult,
    JoinSubmissionCreate,
    JoinSubmissionRead,
    RejectionResult,
    SubmissionOverview,
    SubmissionStatusCounts,
)
from ..utils.bulk_loading import load_many
from ..utils.crud_helpers import create_record, get_record, get_record_by_id, list_records, update_record
from ..utils.store_config_utils import (
    get_credential_by_submission_id,
    get_credentials_by_submission_ids,
)
from .base_service import SessionManagedService
from .credential_service import CredentialService


class SubmissionService(SessionManagedService):
    """Manages dealership join submissions."""

    def __init__(
        self,
        session: Optional[Session] = None,
        credential_service: Optional[CredentialService] = None,
        **kwargs,
    ):
        super().__init__(session=session, **kwargs)
        self._credential_service = credential_service
        self._session_lock = threading.Lock()

    @property
    def credential_service(self) -> CredentialService:
        if self._credential_service is None:
            self._credential_service = CredentialService(session=self.session, config=self.config)
        return self._credential_service

    def _get_submission_row(self, submission_id: str) -> JoinSubmission:
        submission = get_record_by_id(self.session, JoinSubmission, submission_id)
        if not submission:
            raise not_found("JoinSubmission", submission_id=submission_id)
        return submission

    @operation()
    def create_submission(self, data: JoinSubmissionCreate) -> JoinSubmissionRead:
        submission = create_record(
            self.session,
            JoinSubmission,
            {**data.model_dump(), "status": SubmissionStatus.PENDING.value},
        )
        self.logger.info(
            "Join submission received",
            extra={"submission_id": submission.id, "dealership_name": data.dealership_name},
        )
        return JoinSubmissionRead.model_validate(submission)

    def get_submission(self, submission_id: str) -> JoinSubmissionRead:
        """
        Raises:
            NotFoundError: If the submission does not exist
        """
        return JoinSubmissionRead.model_validate(self._get_submission_row(submission_id))

    def list_submissions(
        self, limit: int = 50, offset: int = 0, status: Optional[SubmissionStatus] = None
    ) -> List[JoinSubmissionRead]:
        """Newest submissions first, optionally filtered by status."""
        filters = {"status": status.value} if status else None
        rows = list_records(self.session, JoinSubmission, filters, limit=limit, offset=offset)
        return [JoinSubmissionRead.model_validate(row) for row in rows]

    def _store_configs_bulk(self, submission_ids) -> Dict[str, StoreConfigRead]:
        try:
            return get_credentials_by_submission_ids(self.session, submission_ids)
        except TransportError:
            self.session.rollback()
            raise

    def _store_config_locked(self, submission_id: str) -> Optional[StoreConfigRead]:
        with self._session_lock:
            return get_credential_by_submission_id(self.session, submission_id)

    def get_store_configs_for_submissions(
        self, submission_ids: Iterable[str]
    ) -> Dict[str, StoreConfigRead]:
        """Store configs keyed by submission id, bulk first with per-submission fallback."""
        return load_many(
            submission_ids,
            bulk_fetch=self._store_configs_bulk,
            item_fetch=self._store_config_locked,
            fallback=self.config.features.bulk_load_fallback,
        )

    @operation()
    def get_overview(self, limit: int = 100) -> SubmissionOverview:
        """
        Latest submissions with status counts and the store configs of approved ones.

        Counts cover the submissions returned, matching what the dashboard shows.
        """
        submissions = self.list_submissions(limit=limit)
        by_status = Counter(submission.status for submission in submissions)
        counts = SubmissionStatusCounts(
            all=len(submissions),
            pending=by_status[SubmissionStatus.PENDING],
            reviewing=by_status[SubmissionStatus.REVIEWING],
            approved=by_status[SubmissionStatus.APPROVED],
            rejected=by_status[SubmissionStatus.REJECTED],
        )

        approved_ids = [s.id for s in submissions if s.status == SubmissionStatus.APPROVED]
        store_configs = self.get_store_configs_for_submissions(approved_ids)

        self.logger.info(
            "Submission overview loaded",
            extra={
                "submissions": len(submissions),
                "approved": len(approved_ids),
                "store_configs": len(store_configs),
            },
        )
        return SubmissionOverview(submissions=submissions, counts=counts, store_configs=store_configs)

    @operation()
    def update_status(
        self,
        submission_id: str,
        status: SubmissionStatus,
        assigned_to: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> JoinSubmissionRead:
        """
        Raises:
            NotFoundError: If the submission does not exist
        """
        submission = self._get_submission_row(submission_id)
        updated = update_record(
            self.session,
            JoinSubmission,
            submission.id,
            {"status": SubmissionStatus(status).value, "assigned_to": assigned_to, "notes": notes},
        )
        return JoinSubmissionRead.model_validate(updated)

    @operation()
    def reject_submission(
        self, submission_id: str, admin_dealer_id: str, reason: Optional[str] = None
    ) -> RejectionResult:
        """
        Raises:
            NotFoundError: If the admin or the submission does not exist
        """
        if not get_record_by_id(self.session, Dealer, admin_dealer_id):
            raise not_found("Dealer", dealer_id=admin_dealer_id)

        rejection_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        submission = self.update_status(
            submission_id,
            SubmissionStatus.REJECTED,
            assigned_to=admin_dealer_id,
            notes=rejection_reason,
        )
        return RejectionResult(submission=submission, rejection_reason=rejection_reason)

    def _find_or_create_dealer(self, submission: JoinSubmission) -> tuple:
        email = submission.email.strip().lower()
        dealer = get_record(self.session, Dealer, {"email": email})
        if dealer:
            return dealer, False

        dealer = create_record(
            self.session,
            Dealer,
            {
                "name": f"{submission.first_name} {submission.last_name}".strip(),
                "email": email,
                "role": DealerRole.DEALER.value,
                "dealer_metadata": {
                    "dealership_name": submission.dealership_name,
                    "phone": submission.phone,
                },
            },
        )
        return dealer, True

    @operation()
    def approve_submission(
        self,
        submission_id: str,
        admin_dealer_id: str,
        state: EditableState,
        extras: Optional[CredentialExtras] = None,
    ) -> ApprovalResult:
        """
        Approve a submission and assign its advertising credential.

        The dealer account is looked up by the submission email and created
        when missing. The credential commit may report an invitation warning;
        the approval still stands.

        Raises:
            NotFoundError: If the submission does not exist
            ValidationError: If the submission was already rejected
        """
        submission = self._get_submission_row(submission_id)
        if submission.status == SubmissionStatus.REJECTED.value:
            raise ValidationError(
                "Rejected submissions cannot be approved",
                field="status",
                error_code=ErrorCode.INVALID_STATE_TRANSITION,
                submission_id=submission_id,
            )

        dealer, dealer_created = self._find_or_create_dealer(submission)

        extras = extras or CredentialExtras()
        if not extras.email:
            extras = extras.model_copy(update={"email": dealer.email})
        if not extras.store_name:
            extras = extras.model_copy(update={"store_name": submission.dealership_name})
        if not extras.store_type and submission.dealership_type:
            extras = extras.model_copy(update={"store_type": submission.dealership_type})

        credential = self.credential_service.commit(
            state,
            dealer.id,
            extras,
            assigned_by=admin_dealer_id,
            join_submission_id=submission.id,
        )

        approved = self.update_status(
            submission.id,
            SubmissionStatus.APPROVED,
            assigned_to=admin_dealer_id,
            notes="Accepted and dealer account created" if dealer_created else "Accepted",
        )

        return ApprovalResult(
            submission=approved,
            dealer_id=dealer.id,
            dealer_created=dealer_created,
            credential=credential,
        )
