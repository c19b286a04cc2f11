"""Tests for AssetManager."""

import pytest
from pydantic import ValidationError

from schoollib.assets.manager import AssetManager
from schoollib.assets.schemas import AssetCreate, AssetType


@pytest.fixture
def assets(db):
    """Create an AssetManager with test database."""
    return AssetManager(db)


@pytest.fixture
def sample_assets(assets):
    """A few assets of different types."""
    return [
        assets.create_asset(AssetCreate(title="Grammar Workbook", url="https://example.org/grammar.pdf", category="Portuguese")),
        assets.create_asset(AssetCreate(title="Algebra Basics", asset_type=AssetType.EBOOK, url="https://example.org/algebra.epub", category="Math")),
        assets.create_asset(AssetCreate(title="Poems Read Aloud", asset_type=AssetType.AUDIOBOOK, url="https://example.org/poems.mp3", category="Portuguese")),
    ]


class TestAssetManager:
    """Tests for digital asset links."""

    def test_create_asset(self, assets):
        """Test registering an asset."""
        asset = assets.create_asset(AssetCreate(title="Atlas", url="https://example.org/atlas.pdf"))

        assert asset.id is not None
        assert asset.asset_type == "pdf"
        assert asset.category == "General"

    def test_create_asset_requires_url(self):
        """Test that a link is required."""
        with pytest.raises(ValidationError):
            AssetCreate(title="No link", url="")

    def test_get_asset(self, assets, sample_assets):
        """Test getting an asset by ID."""
        asset = assets.get_asset(sample_assets[0].id)
        assert asset.title == "Grammar Workbook"
        assert assets.get_asset("missing") is None

    def test_list_assets_sorted(self, assets, sample_assets):
        """Test listing by title."""
        titles = [a.title for a in assets.list_assets()]
        assert titles == ["Algebra Basics", "Grammar Workbook", "Poems Read Aloud"]

    def test_list_assets_filters(self, assets, sample_assets):
        """Test filtering by type, category and title."""
        assert [a.title for a in assets.list_assets(asset_type=AssetType.EBOOK)] == ["Algebra Basics"]
        assert len(assets.list_assets(category="portuguese")) == 2
        assert [a.title for a in assets.list_assets(search="poem")] == ["Poems Read Aloud"]

    def test_delete_asset(self, assets, sample_assets):
        """Test deleting an asset."""
        assert assets.delete_asset(sample_assets[0].id) is True
        assert assets.get_asset(sample_assets[0].id) is None
        assert assets.delete_asset(sample_assets[0].id) is False

    def test_assets_counted_in_stats(self, lending, sample_assets):
        """Assets show up on the dashboard."""
        assert lending.get_stats().total_assets == 3
