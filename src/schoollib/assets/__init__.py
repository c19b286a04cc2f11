"""Digital assets: links to PDFs, e-books and audiobooks."""

from .manager import AssetManager
from .models import DigitalAsset
from .schemas import AssetCreate, AssetType

__all__ = [
    "AssetManager",
    "DigitalAsset",
    "AssetCreate",
    "AssetType",
]
