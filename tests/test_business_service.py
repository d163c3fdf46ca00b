"""Tests for business records, seeding and reviews."""

import asyncio

import pytest

from mtokaa.db.seed import seed_businesses
from mtokaa.services import business_service, review_service


async def new_business(**extra):
    return await business_service.create_business({
        "business_name": "Test Garage",
        "business_type": "garage",
        "is_verified": True,
        **extra,
    })


class TestSeed:
    async def test_seed_is_idempotent(self, db):
        assert await seed_businesses() == 8
        assert await seed_businesses() == 0
        counts = await business_service.get_business_counts()
        assert counts == {"total": 8, "listed": 8}


class TestBusinessService:
    async def test_card(self, seeded):
        business = await business_service.get_business(3)
        assert business["business_name"] == "Auto Parts Plus"
        assert [p["name"] for p in business["products"]] == ["Brake Pads (front)", "Engine Oil 5W-30 4L"]
        assert business["addresses"][0].city == "Nairobi"

    async def test_missing(self, db):
        assert await business_service.get_business(999) is None

    async def test_single_primary_address(self, db):
        business_id = await new_business()
        await business_service.add_address(business_id, line="Old", latitude=1.0, longitude=1.0,
                                           is_primary=True)
        await business_service.add_address(business_id, line="New", latitude=2.0, longitude=2.0,
                                           is_primary=True)

        addresses = await business_service.get_addresses(business_id)
        assert [a.is_primary for a in addresses] == [False, True]

    async def test_set_verified(self, db):
        business_id = await new_business(is_verified=False)
        assert (await business_service.get_business_counts())["listed"] == 0
        await business_service.set_verified(business_id)
        assert (await business_service.get_business_counts())["listed"] == 1


class TestReviewService:
    async def test_running_average(self, db):
        business_id = await new_business()
        assert await review_service.add_review(business_id, 100, 4)
        assert await review_service.add_review(business_id, 101, 5, "Great work")

        business = await business_service.get_business(business_id)
        assert business["rating"] == pytest.approx(4.5)
        assert business["total_reviews"] == 2

    async def test_keeps_seeded_aggregates(self, seeded):
        await review_service.add_review(1, 100, 1)
        business = await business_service.get_business(1)
        # (4.5 * 128 + 1) / 129
        assert business["rating"] == pytest.approx(4.5)
        assert business["total_reviews"] == 129

    async def test_one_review_per_customer(self, db):
        business_id = await new_business()
        assert await review_service.add_review(business_id, 100, 5)
        assert not await review_service.add_review(business_id, 100, 1)
        assert (await business_service.get_business(business_id))["total_reviews"] == 1

    async def test_double_tap_saves_one_review(self, db):
        business_id = await new_business()
        saved = await asyncio.gather(
            review_service.add_review(business_id, 7, 5),
            review_service.add_review(business_id, 7, 4),
        )

        assert sorted(saved) == [False, True]
        business = await business_service.get_business(business_id)
        assert business["total_reviews"] == 1
        assert business["rating"] == (await review_service.get_review(business_id, 7))["stars"]

    @pytest.mark.parametrize("stars", [0, 6])
    async def test_stars_out_of_range(self, db, stars):
        with pytest.raises(ValueError):
            await review_service.add_review(1, 100, stars)

    async def test_comments(self, db):
        business_id = await new_business()
        await review_service.add_review(business_id, 100, 4)
        await review_service.add_review(business_id, 101, 3)
        await review_service.update_comment(business_id, 100, "Fast")
        await review_service.update_comment(business_id, 101, "Pricey")

        comments = await review_service.get_recent_comments(business_id)
        assert [c["comment"] for c in comments] == ["Pricey", "Fast"]


class TestActiveBusinesses:
    async def test_listed_only_best_first(self, seeded):
        await business_service.set_verified(6, False)
        listings = await business_service.list_active_businesses()

        assert len(listings) == 7
        assert listings[0].name == "Mobile Mechanic Joe"
        assert "Coast Auto Clinic" not in [b.name for b in listings]
        karen = next(b for b in listings if b.name == "Karen Motors")
        assert karen.coordinate().longitude == 36.7070
