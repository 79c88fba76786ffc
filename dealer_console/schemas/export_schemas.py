"""
Pydantic schemas for stock feed exports.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..constants import ExportFormat


class ExportRequest(BaseModel):
    """What to put in an export archive."""

    format: ExportFormat = ExportFormat.CF247
    include_dealers: bool = True
    include_vehicles: bool = True
    dealer_id: Optional[str] = Field(None, description="Limit the export to one dealer's stock")
    contact_email: Optional[str] = Field(
        None, description="Used on dealer rows when the dealer has no email"
    )
    export_date: Optional[date] = Field(None, description="Date in the file name, today when omitted")


class ExportArchive(BaseModel):
    """A generated ZIP archive ready to download."""

    file_name: str
    content: bytes
    files: List[str] = Field(default_factory=list)
    vehicle_count: int = 0

    content_type: str = "application/zip"


class ExportStats(BaseModel):
    total_dealers: int = 0
    total_vehicles: int = 0


class DealerDetails(BaseModel):
    """Dealer account details used to fill gaps in the advertiser data."""

    dealer_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    advertiser_id: Optional[str] = Field(None, description="Primary advertisement ID from the credential")
    company_name: Optional[str] = None

    @property
    def address(self) -> Dict[str, Any]:
        return self.metadata.get("address") or {}
