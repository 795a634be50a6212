from __future__ import annotations

from collections import defaultdict
from datetime import date

from services.reservations.app.schemas import (
    AvailabilitySlot,
    CuisineRecord,
    LinkParams,
    PriceRange,
    RestaurantRecord,
    SearchRequest,
)


def _amount(v: int | float) -> str:
    return str(int(v)) if float(v).is_integer() else f"{v:.2f}"


def format_price_range(r: PriceRange) -> str:
    lo = f"{_amount(r.min)} {r.currency}" if r.min is not None else ""
    hi = f"{_amount(r.max)} {r.currency}" if r.max is not None else ""
    if lo and hi:
        return f"{lo} - {hi}"
    return lo or hi or "Price not available"


def format_search_results(restaurants: list[RestaurantRecord], req: SearchRequest) -> str:
    if not restaurants:
        return "No restaurants found matching your criteria. Try adjusting your search parameters."

    header = f"Found {len(restaurants)} restaurant{'s' if len(restaurants) > 1 else ''}"
    if req.query:
        header += f' for "{req.query}"'
    if req.cuisines:
        header += f" ({', '.join(req.cuisines)} cuisine)"
    if req.location is not None:
        header += " in the specified area"

    lines = [header + ":", ""]
    for i, r in enumerate(restaurants, start=1):
        lines.append(f"{i}. **{r.name}** (slug: {r.slug})")
        if r.cuisines:
            lines.append(f"   - Cuisine: {', '.join(r.cuisines)}")
        lines.append(f"   - Lunch: {format_price_range(r.lunch_price_range)}")
        lines.append(f"   - Dinner: {format_price_range(r.dinner_price_range)}")
        if r.distance_km is not None:
            lines.append(f"   - Distance: {r.distance_km:.1f} km")
        if r.available_dates:
            lines.append(f"   - Available dates: {', '.join(r.available_dates)}")
        lines.append(f"   - Reservation link: {r.reservation_url}")
        if r.image_url:
            lines.append(f"   - Image: {r.image_url}")
        lines.append("")
    return "\n".join(lines).rstrip()


def _pretty_date(s: str) -> str:
    try:
        return date.fromisoformat(s).strftime("%A, %B %d, %Y")
    except ValueError:
        return s


def format_availability(slots: list[AvailabilitySlot], shop_id: str, num_people: int, start_at: str) -> str:
    if not slots:
        return f"No availability found for restaurant {shop_id} for {num_people} people starting from {start_at}."

    by_date: dict[str, list[AvailabilitySlot]] = defaultdict(list)
    for s in slots:
        by_date[s.date].append(s)

    lines = [f"Availability for restaurant {shop_id} ({num_people} people):", ""]
    for day in sorted(by_date):
        lines.append(f"**{_pretty_date(day)}**")
        open_slots = [s for s in by_date[day] if s.available]
        if not open_slots:
            lines.append("   No availability")
        for s in open_slots:
            lines.append(f"   - {s.time} ({s.party_size} people)")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_cuisines(cuisines: list[CuisineRecord], locale: str) -> str:
    if not cuisines:
        return f"No cuisines found for locale {locale}."
    lines = [f"Available cuisines ({len(cuisines)} total):", ""]
    for i, c in enumerate(sorted(cuisines, key=lambda c: c.name.lower()), start=1):
        lines.append(f"{i}. **{c.name}** ({c.id})")
    lines.append("")
    lines.append("Use these cuisine IDs when searching for restaurants with specific cuisine types.")
    return "\n".join(lines)


def format_reservation_link(url: str, shop_id: str, params: LinkParams) -> str:
    lines = [f"Reservation link for restaurant {shop_id}:", "", f"**{url}**", ""]
    prefilled = []
    if params.num_people is not None:
        prefilled.append(f"- Number of people: {params.num_people}")
    if params.date_min is not None:
        prefilled.append(f"- Date: {params.date_min}")
    if params.time is not None:
        prefilled.append(f"- Time: {params.time}")
    if params.location is not None:
        prefilled.append(f"- Location: {params.location.lat}, {params.location.lng}")
    if prefilled:
        lines.extend(["Pre-filled parameters:", *prefilled, ""])
    lines.append("Open the link above to make a reservation at this restaurant.")
    return "\n".join(lines)
