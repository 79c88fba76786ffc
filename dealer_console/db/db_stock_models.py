"""
Stock vehicles cached from the listing provider.

Only the columns the feed exports read are modelled as columns; the raw
provider payload sections are kept as JSON.
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, Numeric, String

from .db_base import JSON, TimestampMixin, UUIDMixin
from .db_config import Base


class StockVehicle(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "stock_vehicles"

    stock_id = Column(String(100), nullable=False, unique=True)
    dealer_id = Column(String(36), ForeignKey("dealers.id"), nullable=True)
    advertiser_id = Column(String(100), nullable=False)
    lifecycle_state = Column(String(20), nullable=False, default="FORECOURT")

    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    derivative = Column(String(200), nullable=True)
    body_type = Column(String(50), nullable=True)
    fuel_type = Column(String(50), nullable=True)
    odometer_reading_miles = Column(Integer, nullable=True)
    registration = Column(String(20), nullable=True)
    year_of_manufacture = Column(Integer, nullable=True)
    forecourt_price_gbp = Column(Numeric(12, 2), nullable=True)
    total_price_gbp = Column(Numeric(12, 2), nullable=True)

    advertiser_data = Column(JSON, nullable=True)
    vehicle_data = Column(JSON, nullable=True)
    adverts_data = Column(JSON, nullable=True)
    media_data = Column(JSON, nullable=True)
    features_data = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_stock_vehicles_advertiser_state", "advertiser_id", "lifecycle_state"),
    )
