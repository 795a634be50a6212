from __future__ import annotations

import random
from typing import Any

from services.reservations.app.schemas import AvailabilityRequest, SearchRequest, UpstreamRequest
from services.reservations.app.settings import SETTINGS


SHOP_SEARCH_PATH = "/shop_search"
AUTOCOMPLETE_PATH = "/autocomplete"
CUISINES_PATH = "/cuisines"
AVAILABILITY_PATH = "/hub/availability_calendar"

_RANDOMIZE_RANGE = 10000


def to_filtered_search(req: SearchRequest, rng: random.Random | None = None) -> UpstreamRequest:
    """
    Structured shop search. Fixed service parameters are always sent; optional filters only when set,
    since upstream treats an explicit zero differently from an absent filter.

    `randomize_geo` changes on every request so upstream does not serve a cached page.
    """
    token = (rng or random).randrange(_RANDOMIZE_RANGE)
    params: list[tuple[str, str]] = [
        ("shop_universe_id", SETTINGS.shop_universe_id),
        ("availability_days_limit", str(SETTINGS.availability_days_limit)),
        ("availability_format", "date"),
        ("service_mode", SETTINGS.service_mode),
        ("venue_type", SETTINGS.venue_type),
        ("per_page", str(SETTINGS.per_page)),
        ("include_ids", "true"),
        ("randomize_geo", str(token)),
    ]

    if req.location is not None:
        params.append(("geo_latitude", str(req.location.lat)))
        params.append(("geo_longitude", str(req.location.lng)))
    if req.geo_distance is not None:
        params.append(("geo_distance", req.geo_distance))
    if req.date_min is not None:
        params.append(("date_min", req.date_min))
    if req.date_max is not None:
        params.append(("date_max", req.date_max))
    if req.num_people is not None:
        params.append(("num_people", str(req.num_people)))
    if req.time is not None:
        params.append(("time", req.time))
        params.append(("availability_mode", "same_meal_time"))
    if req.budget_min is not None:
        params.append(("budget_dinner_avg_min", str(req.budget_min)))
    if req.budget_max is not None:
        params.append(("budget_dinner_avg_max", str(req.budget_max)))
    if req.sort_by is not None:
        params.append(("sort_by", req.sort_by))
    if req.sort_order is not None:
        params.append(("sort_order", req.sort_order))
    for cuisine in req.cuisines or []:
        params.append(("cuisines[]", cuisine))

    return UpstreamRequest(method="GET", path=SHOP_SEARCH_PATH, params=params)


def to_text_search(req: SearchRequest) -> UpstreamRequest:
    # Autocomplete accepts only the text and the locale.
    params: list[tuple[str, str]] = [
        ("shop_universe_id", SETTINGS.shop_universe_id),
        ("locale", req.locale),
    ]
    if req.query:
        params.append(("text", req.query))
    return UpstreamRequest(method="GET", path=AUTOCOMPLETE_PATH, params=params)


def to_availability_body(req: AvailabilityRequest) -> dict[str, Any]:
    return {
        "locale": req.locale,
        "start_at": req.start_at,
        "shop_id": req.shop_id,
        # Upstream expects the party size as text.
        "num_people": str(req.num_people),
    }


def to_availability_request(req: AvailabilityRequest) -> UpstreamRequest:
    return UpstreamRequest(method="POST", path=AVAILABILITY_PATH, body=to_availability_body(req))


def to_cuisine_catalog() -> UpstreamRequest:
    return UpstreamRequest(method="GET", path=CUISINES_PATH)
