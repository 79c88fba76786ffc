"""
Dealer logo assignment.

A dealer has at most one active logo. Assigning a new one replaces the
active row in place; removing it only marks the row inactive.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..context.operation_context import operation
from ..db.db_dealer_models import Dealer, DealerLogo
from ..exceptions import ErrorCode, NotFoundError, ValidationError, not_found
from ..schemas.logo_schemas import DealerLogoAssign, DealerLogoListItem, DealerLogoRead, LogoAssignResult
from ..utils.crud_helpers import create_record, get_record, get_record_by_id, update_record, wrap_db_error
from .base_service import SessionManagedService


class DealerLogoService(SessionManagedService):
    """Assigns, lists and removes dealer logos."""

    def _active_logo_row(self, dealer_id: str) -> Optional[DealerLogo]:
        return get_record(self.session, DealerLogo, {"dealer_id": dealer_id, "is_active": True})

    @operation()
    def assign_logo(
        self,
        dealer_id: str,
        logo_public_url: str,
        assigned_by: Optional[str] = None,
        logo_file_name: Optional[str] = None,
        logo_file_size: Optional[int] = None,
        logo_mime_type: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> LogoAssignResult:
        """
        Give a dealer a logo, replacing the active one if there is one.

        Raises:
            ValidationError: If dealer_id or logo_public_url is blank
            NotFoundError: If the dealer does not exist
        """
        if not (dealer_id or "").strip() or not (logo_public_url or "").strip():
            raise ValidationError(
                "Dealer ID and logo URL are required",
                field="logo_public_url",
                error_code=ErrorCode.MISSING_REQUIRED,
                dealer_id=dealer_id,
            )
        data = DealerLogoAssign(
            dealer_id=dealer_id,
            logo_public_url=logo_public_url,
            logo_file_name=logo_file_name,
            logo_file_size=logo_file_size,
            logo_mime_type=logo_mime_type,
            notes=notes,
        )

        if not get_record_by_id(self.session, Dealer, data.dealer_id):
            raise not_found("Dealer", dealer_id=data.dealer_id)

        fields = {
            "logo_public_url": data.logo_public_url,
            "logo_file_name": data.logo_file_name,
            "logo_file_size": data.logo_file_size,
            "logo_mime_type": data.logo_mime_type,
            "notes": data.notes,
            "assigned_by": assigned_by,
            "assigned_at": datetime.now(timezone.utc),
        }

        existing = self._active_logo_row(data.dealer_id)
        if existing:
            logo = update_record(self.session, DealerLogo, existing.id, fields, include_none=True)
            created = False
            message = "Dealer logo updated successfully"
        else:
            logo = create_record(
                self.session,
                DealerLogo,
                {**fields, "dealer_id": data.dealer_id, "is_active": True},
            )
            created = True
            message = "Dealer logo assigned successfully"

        self.logger.info(
            message,
            extra={"dealer_id": data.dealer_id, "logo_id": logo.id, "created": created},
        )
        return LogoAssignResult(logo=DealerLogoRead.model_validate(logo), created=created, message=message)

    def get_active_logo(self, dealer_id: str) -> Optional[DealerLogoRead]:
        logo = self._active_logo_row(dealer_id)
        return DealerLogoRead.model_validate(logo) if logo else None

    @operation()
    def list_active_logos(self) -> List[DealerLogoListItem]:
        """All active logos with the owning dealer's name and email, newest first."""
        try:
            rows = (
                self.session.query(DealerLogo, Dealer.name, Dealer.email)
                .join(Dealer, DealerLogo.dealer_id == Dealer.id)
                .filter(DealerLogo.is_active.is_(True))
                .order_by(DealerLogo.assigned_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise wrap_db_error("list", DealerLogo, e) from e

        items = []
        for logo, dealer_name, dealer_email in rows:
            item = DealerLogoListItem.model_validate(logo)
            item.dealer_name = dealer_name
            item.dealer_email = dealer_email
            items.append(item)
        return items

    @operation()
    def remove_logo(self, dealer_id: str) -> DealerLogoRead:
        """
        Deactivate a dealer's logo. The row is kept.

        Raises:
            NotFoundError: If the dealer has no active logo
        """
        existing = self._active_logo_row(dealer_id)
        if not existing:
            raise NotFoundError(
                "No active logo found for this dealer",
                resource_type="DealerLogo",
                dealer_id=dealer_id,
            )

        removed = update_record(self.session, DealerLogo, existing.id, {"is_active": False})
        self.logger.info("Dealer logo removed", extra={"dealer_id": dealer_id, "logo_id": removed.id})
        return DealerLogoRead.model_validate(removed)
