"""
Unit tests for region data models.
"""

from datetime import datetime, timezone

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_edge.app.regions.models import Region, RegionSnapshot


class TestRegion:
    """Test cases for Region."""

    def test_metadata_defaults_to_empty_read_only_mapping(self):
        first = Region(id="reg_us", name="United States", locale_codes=("us",))
        second = Region(id="reg_eu", name="Europe", locale_codes=("de", "fr"))

        assert first.metadata == {}
        assert first.metadata is not second.metadata
        with pytest.raises(TypeError):
            first.metadata["storefront"] = "na"

    def test_equality_is_identity(self):
        one = Region(id="reg_us", name=None, locale_codes=("us",))
        other = Region(id="reg_us", name=None, locale_codes=("us",))

        assert one == one
        assert one != other

    def test_to_dict(self):
        region = Region(id="reg_eu", name="Europe", locale_codes=("de", "fr"), currency_code="eur")

        assert region.to_dict() == {
            "id": "reg_eu",
            "name": "Europe",
            "locale_codes": ["de", "fr"],
            "currency_code": "eur",
            "metadata": {},
        }


class TestRegionSnapshot:
    """Test cases for RegionSnapshot."""

    def test_build_keys_every_locale_to_one_region(self):
        europe = Region(id="reg_eu", name="Europe", locale_codes=("de", "fr"))
        snapshot = RegionSnapshot.build([europe], refreshed_at=10.0, refreshed_at_wall=datetime.now(timezone.utc))

        assert snapshot.get("de") is snapshot.get("fr") is europe
        assert snapshot.unique_regions() == [europe]
        assert snapshot.age(15.0) == 5.0

    def test_empty_snapshot_is_not_populated(self):
        snapshot = RegionSnapshot.empty()

        assert not snapshot.is_populated
        assert snapshot.age(100.0) is None
        assert snapshot.get("us") is None

    def test_empty_region_list_still_populates(self):
        snapshot = RegionSnapshot.build([], refreshed_at=1.0, refreshed_at_wall=datetime.now(timezone.utc))

        assert snapshot.is_populated
        assert snapshot.regions == {}
