"""
Pydantic schemas for dealer logos.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DealerLogoAssign(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    dealer_id: str = Field(..., min_length=1)
    logo_public_url: str = Field(..., min_length=1, description="Public URL of the uploaded image")
    logo_file_name: Optional[str] = Field(None, max_length=255)
    logo_file_size: Optional[int] = Field(None, ge=0)
    logo_mime_type: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class DealerLogoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    dealer_id: str
    logo_public_url: str
    logo_file_name: Optional[str] = None
    logo_file_size: Optional[int] = None
    logo_mime_type: Optional[str] = None
    is_active: bool = True
    notes: Optional[str] = None
    assigned_by: Optional[str] = None
    assigned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DealerLogoListItem(DealerLogoRead):
    """Active logo together with the dealer it belongs to."""

    dealer_name: Optional[str] = None
    dealer_email: Optional[str] = None


class LogoAssignResult(BaseModel):
    logo: DealerLogoRead
    created: bool
    message: str
