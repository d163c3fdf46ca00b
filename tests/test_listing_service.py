"""Tests for listing fetchers and distance re-ranking against the demo catalogue."""

import pytest

from conftest import CBD
from mtokaa.services import listing_service
from mtokaa.services.listing_models import Address, Listing
from mtokaa.services.listing_service import rank_by_distance


def names(listings):
    return [listing.name for listing in listings]


class TestRankByDistance:
    def make(self, name, *coords):
        addresses = [Address(latitude=coords[0], longitude=coords[1], is_primary=True)] if coords else []
        return Listing(id=name, kind="service", name=name, addresses=addresses)

    def test_without_location_keeps_order(self):
        listings = [self.make("far", -4.04, 39.67), self.make("near", -1.29, 36.82)]
        assert names(rank_by_distance(listings, None, None)) == ["far", "near"]

    def test_zero_latitude_counts_as_location(self):
        listings = [self.make("far", 10.0, 10.0), self.make("near", 0.1, 0.1)]
        assert names(rank_by_distance(listings, 0.0, 0.0)) == ["near", "far"]

    def test_missing_address_sorts_last(self):
        listings = [self.make("nowhere"), self.make("near", -1.29, 36.82)]
        assert names(rank_by_distance(listings, *CBD)) == ["near", "nowhere"]

    def test_limit(self):
        listings = [self.make(str(i), -1.29 - i / 10, 36.82) for i in range(5)]
        assert names(rank_by_distance(listings, *CBD, limit=2)) == ["0", "1"]


class TestFeaturedBusinesses:
    async def test_by_rating_without_location(self, seeded):
        result = await listing_service.get_featured_businesses(limit=2)
        assert names(result) == ["Mobile Mechanic Joe", "Coast Auto Clinic"]

    async def test_nearest_within_overfetch_window(self, seeded):
        # Window is the top 4 by rating: Joe, Coast, Karen, Downtown
        result = await listing_service.get_featured_businesses(2, *CBD)
        assert names(result) == ["Downtown Auto Repair", "Mobile Mechanic Joe"]

    async def test_unlocated_businesses_last(self, seeded):
        result = await listing_service.get_featured_businesses(8, *CBD)
        assert names(result)[-2:] == ["Kilimani Quick Fix", "Eastlands Spares"]
        assert names(result)[:3] == ["Downtown Auto Repair", "Auto Parts Plus", "Mobile Mechanic Joe"]

    async def test_primary_address_is_used(self, seeded):
        result = await listing_service.get_featured_businesses(8, *CBD)
        karen = next(b for b in result if b.name == "Karen Motors")
        assert karen.primary_address().city == "Nairobi"
        assert len(karen.addresses) == 2

    async def test_catalogue_preview(self, seeded):
        result = await listing_service.get_featured_businesses(8)
        parts = next(b for b in result if b.name == "Auto Parts Plus")
        # Out-of-stock spark plugs are hidden
        assert [p["name"] for p in parts.data["products"]] == ["Brake Pads (front)", "Engine Oil 5W-30 4L"]
        assert parts.data["services"] == []

    async def test_unverified_hidden(self, seeded):
        from mtokaa.services import business_service

        await business_service.set_verified(2, False)
        result = await listing_service.get_featured_businesses(8)
        assert "Mobile Mechanic Joe" not in names(result)


class TestFeaturedServicesAndProducts:
    async def test_services_by_rating(self, seeded):
        result = await listing_service.get_featured_services(limit=3)
        assert names(result) == ["Mobile Repair", "Emergency Service", "Tire Change"]
        assert {r.kind for r in result} == {"service"}

    async def test_services_near_user(self, seeded):
        result = await listing_service.get_featured_services(3, *CBD)
        # Downtown's services fall outside the 6-row window even though they are closer
        assert names(result) == ["Mobile Repair", "Emergency Service", "Tire Change"]
        assert "Oil Change" not in names(result)

    async def test_products_in_stock_only(self, seeded):
        result = await listing_service.get_featured_products(limit=10)
        assert "Spark Plug Set" not in names(result)
        assert names(result)[0] == "Brake Pads (front)"
        assert names(result)[-1] == "Side Mirror (universal)"

    async def test_products_near_user(self, seeded):
        result = await listing_service.get_featured_products(limit=2, user_lat=-1.1460, user_lon=36.9610)
        assert names(result)[0] == "195/65R15 Tyre"


class TestSearchServices:
    async def test_matches_title_and_tags(self, seeded):
        result = await listing_service.search_services("oil")
        assert names(result) == ["Full Service", "Oil Change"]

    async def test_ranked_by_distance_with_location(self, seeded):
        result = await listing_service.search_services("oil", user_lat=CBD[0], user_lon=CBD[1])
        assert names(result) == ["Oil Change", "Full Service"]

    async def test_category_filter(self, seeded):
        result = await listing_service.search_services("service", category="emergency")
        assert names(result) == ["Emergency Service"]

    async def test_no_match(self, seeded):
        assert await listing_service.search_services("hovercraft") == []


class TestNearbyCandidates:
    @pytest.mark.parametrize("radius, expected", [
        (5, {"Downtown Auto Repair", "Mobile Mechanic Joe", "Auto Parts Plus"}),
        (15, {"Downtown Auto Repair", "Mobile Mechanic Joe", "Auto Parts Plus", "Karen Motors"}),
        (50, {"Downtown Auto Repair", "Mobile Mechanic Joe", "Auto Parts Plus", "Karen Motors",
              "Thika Road Tyres"}),
    ])
    async def test_bounding_box(self, seeded, radius, expected):
        result = await listing_service.get_nearby_candidates(*CBD, radius)
        assert set(names(result)) == expected
        assert {r.kind for r in result} == {"business"}

    async def test_feeds_proximity_ranking(self, seeded):
        from mtokaa.services.geo_service import Coordinate
        from mtokaa.services.proximity_service import find_nearby

        candidates = await listing_service.get_nearby_candidates(*CBD, 15)
        ranked = find_nearby(Coordinate(*CBD), candidates, max_distance=15)
        assert [r.listing.name for r in ranked] == [
            "Downtown Auto Repair", "Auto Parts Plus", "Mobile Mechanic Joe", "Karen Motors",
        ]
