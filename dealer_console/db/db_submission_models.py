"""
Join request submitted by a dealership that wants to be onboarded.
"""

from sqlalchemy import Column, Index, Integer, String, Text

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class JoinSubmission(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "join_submissions"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(320), nullable=False)
    phone = Column(String(50), nullable=True)
    dealership_name = Column(String(200), nullable=False)
    dealership_type = Column(String(50), nullable=True)
    number_of_vehicles = Column(Integer, nullable=True)
    inquiry_type = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    preferred_contact = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    assigned_to = Column(String(36), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (Index("ix_join_submissions_status", "status"),)
