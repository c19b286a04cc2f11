"""Pydantic schemas for digital assets."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AssetType(str, Enum):
    """Kind of digital asset."""

    PDF = "pdf"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"


class AssetCreate(BaseModel):
    """Schema for registering a digital asset link."""

    title: str = Field(..., min_length=1, max_length=500)
    asset_type: AssetType = AssetType.PDF
    category: str = Field(default="General", max_length=100)
    url: str = Field(..., min_length=1)
    cover_url: Optional[str] = None
