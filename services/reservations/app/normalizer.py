from __future__ import annotations

from typing import Any

from services.reservations.app.links import build_reservation_url
from services.reservations.app.location import distance_km
from services.reservations.app.logging import logger
from services.reservations.app.schemas import (
    AvailabilitySlot,
    Coordinate,
    CuisineRecord,
    PriceRange,
    RestaurantRecord,
    SearchRequest,
)


DEFAULT_CURRENCY = "JPY"
UNKNOWN_NAME = "Unknown Restaurant"

# Caller locales that differ from the upstream translation locale codes.
TRANSLATION_LOCALES = {"jp": "ja"}


def _dict(v: Any) -> dict[str, Any]:  # noqa: ANN401
    return v if isinstance(v, dict) else {}


def _str(v: Any) -> str | None:  # noqa: ANN401
    if v is None or isinstance(v, bool):
        return None
    s = str(v).strip()
    return s or None


def _number(v: Any) -> int | float | None:  # noqa: ANN401
    """
    Upstream budgets arrive as numbers or numeric strings. Anything else is treated as absent, never as zero.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return v
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return None
        try:
            return int(s)
        except ValueError:
            try:
                return float(s)
            except ValueError:
                return None
    return None


def _coordinate(geocode: Any) -> Coordinate | None:  # noqa: ANN401
    """
    Coordinates come from `geocode.lat` / `geocode.lon`. Missing or out-of-range values yield None,
    so an absent location is never mistaken for (0, 0).
    """
    g = _dict(geocode)
    lat = _number(g.get("lat"))
    lng = _number(g.get("lon", g.get("lng")))
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinate(lat=lat, lng=lng)


def _string_list(v: Any) -> list[str]:  # noqa: ANN401
    if isinstance(v, str):
        return [v] if v.strip() else []
    if not isinstance(v, list):
        return []
    return [s for s in (_str(x) for x in v) if s]


def _available_dates(v: Any) -> list[str]:  # noqa: ANN401
    # `availability_format=date` yields plain date strings; tolerate {"date": ...} entries too.
    if not isinstance(v, list):
        return []
    out: list[str] = []
    for item in v:
        d = _str(item.get("date")) if isinstance(item, dict) else _str(item)
        if d:
            out.append(d)
    return out


def _pricing(shop: dict[str, Any], currency: str) -> dict[str, Any]:
    """
    Shared price policy for both search shapes: read the upstream budget fields as-is, no derivation.
    """
    return {
        "price_avg": _number(shop.get("budget_avg")),
        "lunch_price_range": PriceRange(
            min=_number(shop.get("budget_lunch_min")),
            max=_number(shop.get("budget_lunch_max")),
            currency=currency,
        ),
        "dinner_price_range": PriceRange(
            min=_number(shop.get("budget_dinner_min")),
            max=_number(shop.get("budget_dinner_max")),
            currency=currency,
        ),
    }


def _distance(location: Coordinate | None, req: SearchRequest) -> float | None:
    if location is None or req.location is None:
        return None
    return round(distance_km(req.location, location), 3)


def _record(
    *,
    shop: dict[str, Any],
    record_id: str,
    slug: str,
    name: str,
    image_url: str | None,
    available_dates: list[str],
    req: SearchRequest,
) -> RestaurantRecord:
    currency = _str(shop.get("currency")) or DEFAULT_CURRENCY
    location = _coordinate(shop.get("geocode"))
    return RestaurantRecord(
        id=record_id,
        name=name,
        slug=slug,
        cuisines=_string_list(shop.get("cuisines")),
        location=location,
        currency=currency,
        available_dates=available_dates,
        image_url=image_url,
        reservation_url=build_reservation_url(slug, req, req.locale),
        distance_km=_distance(location, req),
        **_pricing(shop, currency),
    )


def from_text_search(raw: Any, req: SearchRequest) -> list[RestaurantRecord]:  # noqa: ANN401
    """
    Autocomplete shape: `{"shops": [{"text", "geocode": {...}, "payload": {"shop_slug", ...}, ...}]}`.
    The `shops` key is omitted entirely when there are no shop suggestions.
    """
    shops = _dict(raw).get("shops")
    if not isinstance(shops, list):
        return []

    out: list[RestaurantRecord] = []
    for shop in shops:
        if not isinstance(shop, dict):
            continue
        payload = _dict(shop.get("payload"))
        identifier = _str(payload.get("shop_id")) or _str(shop.get("id"))
        slug = _str(payload.get("shop_slug")) or identifier
        if not slug:
            logger.info("restaurant_dropped", shape="text_search", reason="missing_slug_and_id")
            continue
        out.append(
            _record(
                shop=shop,
                record_id=identifier or slug,
                slug=slug,
                name=_str(shop.get("text")) or UNKNOWN_NAME,
                image_url=_str(shop.get("search_image")),
                available_dates=[],
                req=req,
            )
        )
    return out


def _shop_name(v: Any) -> str:  # noqa: ANN401
    # shop_search returns the name as a list of localized strings.
    if isinstance(v, list):
        for item in v:
            s = _str(item)
            if s:
                return s
        return UNKNOWN_NAME
    return _str(v) or UNKNOWN_NAME


def from_filtered_search(raw: Any, req: SearchRequest) -> list[RestaurantRecord]:  # noqa: ANN401
    """
    Shop search shape: `{"shops": [{"id", "slug", "name": [...], "geocode", "availability", ...}], "total_count", ...}`.
    """
    shops = _dict(raw).get("shops")
    if not isinstance(shops, list):
        return []

    out: list[RestaurantRecord] = []
    for shop in shops:
        if not isinstance(shop, dict):
            continue
        shop_id = _str(shop.get("id"))
        slug = _str(shop.get("slug")) or shop_id
        if not slug:
            logger.info("restaurant_dropped", shape="filtered_search", reason="missing_slug_and_id")
            continue
        out.append(
            _record(
                shop=shop,
                record_id=shop_id or slug,
                slug=slug,
                name=_shop_name(shop.get("name")),
                image_url=_str(shop.get("search_image")),
                available_dates=_available_dates(shop.get("availability")),
                req=req,
            )
        )
    return out


def from_availability(raw: Any, party_size: int) -> list[AvailabilitySlot]:  # noqa: ANN401
    """
    Flatten `availability_calendar.data` (date -> time -> bool) into slots. Upstream carries no per-slot
    party size, so every slot echoes the requested one. A missing calendar means no slots.
    """
    data = _dict(_dict(_dict(raw).get("availability_calendar")).get("data"))
    slots: list[AvailabilitySlot] = []
    for day, times in data.items():
        if not isinstance(times, dict):
            continue
        for at, available in times.items():
            # Only a literal true marks a slot open.
            slots.append(AvailabilitySlot(date=str(day), time=str(at), available=available is True, party_size=party_size))
    return slots


def translation_locale(locale: str) -> str:
    return TRANSLATION_LOCALES.get(locale, locale)


def from_cuisine_catalog(raw: Any, locale: str) -> list[CuisineRecord]:  # noqa: ANN401
    """
    Each catalog entry is `{"field": <id>, "text_translations": [{"locale", "translation"}, ...]}`.
    Entries without a translation for the requested locale are skipped rather than shown in English.
    """
    entries = _dict(raw).get("cuisines") if not isinstance(raw, list) else raw
    if not isinstance(entries, list):
        return []

    wanted = translation_locale(locale)
    out: list[CuisineRecord] = []
    skipped = 0
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        cuisine_id = _str(entry.get("field"))
        if not cuisine_id:
            continue
        translations = entry.get("text_translations")
        if not isinstance(translations, list):
            skipped += 1
            continue
        names: dict[str, str] = {}
        for t in translations:
            t = _dict(t)
            loc = _str(t.get("locale"))
            text = _str(t.get("translation"))
            if loc and text and loc not in names:
                names[loc] = text
        name = names.get(wanted)
        if name is None:
            skipped += 1
            continue
        out.append(CuisineRecord(id=cuisine_id, name=name, locale=locale, names=names))

    if skipped:
        logger.info("cuisines_skipped_missing_locale", locale=locale, skipped=skipped)
    return out
