"""
Per-dealer advertising API linkage.

Advertisement IDs live in two shapes. The enhanced shape (advertisement_id
plus additional_advertisement_ids) is authoritative; the legacy shape
(primary_advertisement_id plus advertisement_ids) is still written so older
readers keep working.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .db_base import JSON, TimestampMixin, UUIDMixin
from .db_config import Base


class StoreConfig(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "store_config"

    dealer_id = Column(String(36), ForeignKey("dealers.id"), nullable=False, unique=True)
    join_submission_id = Column(
        String(36), ForeignKey("join_submissions.id"), nullable=True, index=True
    )

    email = Column(String(320), nullable=True)
    store_name = Column(String(200), nullable=True)
    store_type = Column(String(50), nullable=True)

    # Enhanced shape
    advertisement_id = Column(Text, nullable=True)
    additional_advertisement_ids = Column(JSON, nullable=True)

    # Legacy shape
    primary_advertisement_id = Column(String(100), nullable=True)
    advertisement_ids = Column(JSON, nullable=True)

    integration_id = Column(String(100), nullable=True)
    company_name = Column(String(200), nullable=True)
    company_logo_url = Column(Text, nullable=True)

    invitation_status = Column(String(20), nullable=False, default="none")
    invitation_id = Column(String(100), nullable=True)

    assigned_by = Column(String(36), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    dealer = relationship("Dealer", back_populates="store_config")
