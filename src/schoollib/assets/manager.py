"""Digital asset manager."""

import logging
from typing import Optional

from sqlalchemy import func, select

from ..db.sqlite import Database, get_db
from .models import DigitalAsset
from .schemas import AssetCreate, AssetType

logger = logging.getLogger(__name__)


class AssetManager:
    """Manages digital asset links."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    def create_asset(self, data: AssetCreate) -> DigitalAsset:
        """Register a digital asset."""
        with self.db.get_session() as session:
            asset = DigitalAsset(
                title=data.title,
                asset_type=data.asset_type.value,
                category=data.category,
                url=data.url,
                cover_url=data.cover_url,
            )
            session.add(asset)
            session.commit()
            session.refresh(asset)
            session.expunge(asset)

        logger.info("Added digital asset %s (%s)", asset.id, asset.title)
        return asset

    def get_asset(self, asset_id: str) -> Optional[DigitalAsset]:
        """Get a digital asset by ID."""
        with self.db.get_session() as session:
            asset = session.get(DigitalAsset, asset_id)
            if asset:
                session.expunge(asset)
            return asset

    def list_assets(
        self,
        asset_type: Optional[AssetType] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[DigitalAsset]:
        """List digital assets sorted by title.

        Args:
            asset_type: Filter by pdf/ebook/audiobook
            category: Filter by category (case-insensitive)
            search: Match against the title

        Returns:
            List of assets
        """
        with self.db.get_session() as session:
            stmt = select(DigitalAsset).order_by(DigitalAsset.title)

            if asset_type:
                stmt = stmt.where(DigitalAsset.asset_type == asset_type.value)
            if category:
                stmt = stmt.where(func.lower(DigitalAsset.category) == category.lower())
            if search:
                stmt = stmt.where(DigitalAsset.title.ilike(f"%{search}%"))

            assets = session.execute(stmt).scalars().all()
            for asset in assets:
                session.expunge(asset)
            return list(assets)

    def delete_asset(self, asset_id: str) -> bool:
        """Delete a digital asset.

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            asset = session.get(DigitalAsset, asset_id)
            if not asset:
                return False

            session.delete(asset)
            return True
