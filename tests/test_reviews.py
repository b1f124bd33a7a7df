import asyncio

import pytest
from bson import ObjectId

from utils.constants import ALREADY_REVIEWED_MESSAGE
from workisready.core.exceptions import ResourceNotFoundError, ValidationError
from workisready.models.provider import calculate_average_rating
from workisready.services.provider_service import ProviderService
from support import USER, FakeCollection


def _provider():
    return {
        "_id": ObjectId(),
        "user_id": ObjectId(),
        "first_name": "Yaw",
        "surname": "Asante",
        "city": "Tamale",
        "region": "Northern",
        "district": "Tamale Metropolitan",
        "phone": "0201112222",
        "email": "yaw@example.com",
        "category": ["Electrical"],
        "bio": "Certified electrician handling wiring, fittings and solar installations.",
        "reviews": [],
        "average_rating": 0,
    }


@pytest.mark.parametrize(
    "ratings, expected",
    [([], 0), ([5, 4], 4.5), ([5, 4, 4], 4.3), ([1], 1.0)],
)
def test_average_rating(ratings, expected):
    assert calculate_average_rating([{"rating": rating} for rating in ratings]) == expected


def test_review_updates_average():
    provider = _provider()
    providers = FakeCollection([provider])
    service = ProviderService(providers)

    result = asyncio.run(service.add_review(str(provider["_id"]), USER, 4, "Quick and tidy work"))

    assert result["averageRating"] == 4
    assert result["reviewCount"] == 1
    assert result["reviews"][0]["name"] == USER["name"]
    assert result["reviews"][0]["userId"] == str(USER["_id"])


def test_second_review_from_same_user_rejected():
    provider = _provider()
    providers = FakeCollection([provider])
    service = ProviderService(providers)

    asyncio.run(service.add_review(str(provider["_id"]), USER, 5, "Excellent"))
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.add_review(str(provider["_id"]), USER, 1, "Changed my mind"))

    assert excinfo.value.message == ALREADY_REVIEWED_MESSAGE
    stored = providers.documents[0]
    assert len(stored["reviews"]) == 1
    assert stored["average_rating"] == 5


def test_other_users_can_review():
    provider = _provider()
    providers = FakeCollection([provider])
    service = ProviderService(providers)
    other = {**USER, "_id": ObjectId(), "name": "", "email": "esi@example.com"}

    asyncio.run(service.add_review(str(provider["_id"]), USER, 5, "Excellent"))
    result = asyncio.run(service.add_review(str(provider["_id"]), other, 4, "Good"))

    assert result["averageRating"] == 4.5
    assert result["reviews"][1]["name"] == "esi@example.com"


@pytest.mark.parametrize("provider_id", [str(ObjectId()), "not-an-id"])
def test_review_for_unknown_provider(provider_id):
    service = ProviderService(FakeCollection([_provider()]))
    with pytest.raises(ResourceNotFoundError):
        asyncio.run(service.add_review(provider_id, USER, 3, "Fine"))
