from __future__ import annotations

import pytest
from pydantic import ValidationError


@pytest.mark.parametrize(
    "kwargs",
    [
        {"date_min": "2025/07/15"},
        {"date_max": "2025-02-30"},
        {"time": "7pm"},
        {"num_people": 0},
        {"num_people": 21},
        {"budget_min": -1},
        {"budget_min": 5000, "budget_max": 1000},
        {"location": {"lat": 91, "lng": 0}},
        {"location": {"lat": 0, "lng": -181}},
        {"sort_by": "rating"},
        {"locale": "fr"},
        {"unexpected": True},
    ],
)
def test_search_request_rejects_invalid_input(kwargs) -> None:
    from services.reservations.app.schemas import SearchRequest

    with pytest.raises(ValidationError):
        SearchRequest(**kwargs)


def test_search_request_accepts_valid_input() -> None:
    from services.reservations.app.schemas import SearchRequest

    req = SearchRequest(date_min="2025-07-15", time="9:30", num_people=20, budget_min=0, budget_max=0)
    assert req.locale == "en"
    assert req.time == "9:30"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_at": "2025-07-15T00:00:00Z", "num_people": 2},
        {"shop_id": "", "start_at": "2025-07-15T00:00:00Z", "num_people": 2},
        {"shop_id": "s", "num_people": 2},
        {"shop_id": "s", "start_at": "tomorrow", "num_people": 2},
        {"shop_id": "s", "start_at": "2025-07-15T00:00:00Z"},
        {"shop_id": "s", "start_at": "2025-07-15T00:00:00Z", "num_people": 25},
    ],
)
def test_availability_request_requires_all_fields(kwargs) -> None:
    from services.reservations.app.schemas import AvailabilityRequest

    with pytest.raises(ValidationError):
        AvailabilityRequest(**kwargs)


def test_records_are_immutable() -> None:
    from services.reservations.app.schemas import AvailabilitySlot

    slot = AvailabilitySlot(date="2025-07-15", time="18:00", available=True, party_size=2)
    with pytest.raises(ValidationError):
        slot.available = False  # type: ignore[misc]


def test_restaurant_record_requires_non_empty_slug() -> None:
    from services.reservations.app.schemas import PriceRange, RestaurantRecord

    with pytest.raises(ValidationError):
        RestaurantRecord(
            id="x",
            name="x",
            slug="",
            lunch_price_range=PriceRange(),
            dinner_price_range=PriceRange(),
            reservation_url="https://example.test",
        )
