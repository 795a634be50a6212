from __future__ import annotations

from urllib.parse import quote, urlencode

from services.reservations.app.schemas import LinkParams
from services.reservations.app.settings import SETTINGS


def _fixed_params() -> list[tuple[str, str]]:
    return [
        ("availability_days_limit", str(SETTINGS.availability_days_limit)),
        ("availability_format", "date"),
        ("service_mode", SETTINGS.service_mode),
        ("venue_type", SETTINGS.venue_type),
    ]


def prefill_params(params: LinkParams) -> list[tuple[str, str]]:
    """
    Optional reservation prefill parameters, in their fixed order. Only fields that are set are emitted.
    """
    out: list[tuple[str, str]] = []
    if params.num_people is not None:
        out.append(("num_people", str(params.num_people)))
    if params.date_min is not None:
        out.append(("date_min", params.date_min))
    if params.date_max is not None:
        out.append(("date_max", params.date_max))
    if params.time is not None:
        # Upstream only honours `time` together with the meal-time mode.
        out.append(("time", params.time))
        out.append(("availability_mode", "same_meal_time"))
    if params.budget_min is not None:
        out.append(("budget_dinner_avg_min", str(params.budget_min)))
    if params.budget_max is not None:
        out.append(("budget_dinner_avg_max", str(params.budget_max)))
    if params.location is not None:
        out.append(("geo_latitude", str(params.location.lat)))
        out.append(("geo_longitude", str(params.location.lng)))
    if params.geo_distance is not None:
        out.append(("geo_distance", params.geo_distance))
    if params.sort_by is not None:
        out.append(("sort_by", params.sort_by))
    if params.sort_order is not None:
        out.append(("sort_order", params.sort_order))
    return out


def build_reservation_url(slug: str, params: LinkParams | dict | None = None, locale: str = "en") -> str:
    """
    Deterministic reservation URL for a restaurant slug. Same inputs always give the same string.
    """
    if isinstance(params, dict):
        params = LinkParams.model_validate(params)
    if not slug:
        raise ValueError("slug is required to build a reservation url")
    base = f"{SETTINGS.reservation_base_url.rstrip('/')}/{quote(locale, safe='')}/{quote(slug, safe='')}"
    query = _fixed_params() + prefill_params(params if params is not None else LinkParams())
    return f"{base}?{urlencode(query, safe=':')}"
