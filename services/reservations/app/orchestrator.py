from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from services.reservations.app.cuisines import CuisineCatalog
from services.reservations.app.links import build_reservation_url
from services.reservations.app.location import LocationResolver
from services.reservations.app.logging import logger
from services.reservations.app.normalizer import from_availability, from_filtered_search, from_text_search
from services.reservations.app.schemas import (
    AvailabilityRequest,
    AvailabilitySlot,
    Coordinate,
    CuisineRecord,
    GenerateReservationLinkInput,
    LinkParams,
    RestaurantRecord,
    SearchRequest,
    SearchRestaurantsInput,
)
from services.reservations.app.settings import SETTINGS
from services.reservations.app.translator import to_availability_request, to_filtered_search, to_text_search
from services.reservations.app.upstream import UpstreamClient


@dataclass(frozen=True)
class SearchOutcome:
    restaurants: list[RestaurantRecord]
    text_search_count: int = 0
    filtered_search_count: int = 0
    # Cuisine ids actually sent with the filtered search.
    cuisines: list[str] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "restaurants": len(self.restaurants),
            "text_search": self.text_search_count,
            "filtered_search": self.filtered_search_count,
        }


def _merge_ids(explicit: list[str] | None, matched: list[str]) -> list[str]:
    return list(dict.fromkeys([*(explicit or []), *matched]))


class SearchOrchestrator:
    def __init__(
        self,
        client: UpstreamClient | None = None,
        resolver: LocationResolver | None = None,
        catalog: CuisineCatalog | None = None,
    ) -> None:
        self._client = client or UpstreamClient()
        self._resolver = resolver or LocationResolver()
        self._catalog = catalog or CuisineCatalog(self._client)

    def _coordinate(self, location: Coordinate | str | None) -> Coordinate | None:
        # A blank place name means no location filter at all.
        if isinstance(location, str):
            if not location.strip():
                return None
            return self._resolver.resolve(location)
        return location

    def prepare(self, inp: SearchRestaurantsInput) -> SearchRequest:
        """
        Boundary step: resolve a place name and default the search radius when an anchor is present.
        """
        data = inp.model_dump(exclude={"location"})
        location = self._coordinate(inp.location)
        if location is not None and not inp.geo_distance:
            data["geo_distance"] = SETTINGS.default_geo_distance
        return SearchRequest(**data, location=location)

    async def _filtered(self, req: SearchRequest) -> list[RestaurantRecord]:
        raw = await self._client.fetch("shop_search", to_filtered_search(req))
        return from_filtered_search(raw, req)

    async def _text(self, req: SearchRequest) -> list[RestaurantRecord]:
        raw = await self._client.fetch("autocomplete", to_text_search(req))
        return from_text_search(raw, req)

    async def search(self, req: SearchRequest) -> SearchOutcome:
        """
        Without a query: one filtered search. With a query: match cuisines from the query text, add them to
        the filters, then run text and filtered search together. Text results always come first and the two
        lists are not deduplicated against each other.
        """
        if not req.query:
            filtered = await self._filtered(req)
            return SearchOutcome(
                restaurants=filtered,
                filtered_search_count=len(filtered),
                cuisines=list(req.cuisines or []),
            )

        matched = await self._catalog.match(req.query, req.locale)
        req = req.model_copy(update={"cuisines": _merge_ids(req.cuisines, matched)})
        logger.info("cuisines_matched", query=req.query, matched=matched)

        text, filtered = await asyncio.gather(self._text(req), self._filtered(req))
        return SearchOutcome(
            restaurants=[*text, *filtered],
            text_search_count=len(text),
            filtered_search_count=len(filtered),
            cuisines=list(req.cuisines or []),
        )

    async def availability(self, req: AvailabilityRequest) -> list[AvailabilitySlot]:
        raw = await self._client.fetch("availability_calendar", to_availability_request(req))
        return from_availability(raw, req.num_people)

    async def cuisines(self, locale: str = "en") -> list[CuisineRecord]:
        return await self._catalog.list(locale)

    def link_params(self, inp: GenerateReservationLinkInput) -> LinkParams:
        return LinkParams(
            num_people=inp.num_people,
            date_min=inp.date,
            time=inp.time,
            location=self._coordinate(inp.location),
        )

    def reservation_link(self, inp: GenerateReservationLinkInput) -> str:
        return build_reservation_url(inp.shop_id, self.link_params(inp), inp.locale)
