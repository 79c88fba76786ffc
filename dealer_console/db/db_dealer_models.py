"""
Dealer account and dealer logo models.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .db_base import JSON, TimestampMixin, UUIDMixin, utc_now
from .db_config import Base


class Dealer(Base, UUIDMixin, TimestampMixin):
    """A dealership account. identity_user_id stays empty until the dealer signs up."""

    __tablename__ = "dealers"

    identity_user_id = Column(String(100), nullable=True, unique=True)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False, unique=True, index=True)
    role = Column(String(20), nullable=False, default="dealer")

    # Address, phone, website and other profile details
    dealer_metadata = Column("metadata", JSON, nullable=True)

    store_config = relationship("StoreConfig", back_populates="dealer", uselist=False)
    logos = relationship("DealerLogo", back_populates="dealer")


class DealerLogo(Base, UUIDMixin, TimestampMixin):
    """Logo image assigned to a dealer. At most one row per dealer is active."""

    __tablename__ = "dealer_logos"

    dealer_id = Column(String(36), ForeignKey("dealers.id"), nullable=False)
    logo_public_url = Column(Text, nullable=False)
    logo_file_name = Column(String(255), nullable=True)
    logo_file_size = Column(Integer, nullable=True)
    logo_mime_type = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    assigned_by = Column(String(36), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    dealer = relationship("Dealer", back_populates="logos")

    __table_args__ = (Index("ix_dealer_logos_dealer_active", "dealer_id", "is_active"),)
