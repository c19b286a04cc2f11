"""SQLAlchemy models for digital assets.

Tables:
- digital_assets: Links to PDFs, e-books and audiobooks
"""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now
from .schemas import AssetType


class DigitalAsset(Base):
    """Digital asset model - a link, not a copy, so it is never loaned."""

    __tablename__ = "digital_assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    asset_type: Mapped[str] = mapped_column(String(20), default=AssetType.PDF.value, index=True)
    category: Mapped[str] = mapped_column(String(100), default="General")
    url: Mapped[str] = mapped_column(Text, nullable=False)
    cover_url: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<DigitalAsset(id={self.id}, title='{self.title}', type={self.asset_type})>"
