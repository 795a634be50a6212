from __future__ import annotations

from services.reservations.app.normalizer import from_cuisine_catalog
from services.reservations.app.schemas import CuisineRecord
from services.reservations.app.translator import to_cuisine_catalog
from services.reservations.app.upstream import UpstreamClient


def match_cuisines(cuisines: list[CuisineRecord], query: str) -> list[str]:
    """
    Free-text cuisine matching against an already-fetched catalog.

    Canonical ids are hyphenated tokens ("indian-curry"), so the query is also tried with spaces
    replaced by hyphens. Display names are matched in the catalog's own locale only.
    """
    lowered = (query or "").strip().lower()
    if not lowered:
        return []
    dashed = lowered.replace(" ", "-")
    return [c.id for c in cuisines if dashed in c.id.lower() or lowered in c.name.lower()]


class CuisineCatalog:
    """Fetches the cuisine catalog on every call; nothing is cached between calls."""

    def __init__(self, client: UpstreamClient):
        self._client = client

    async def list(self, locale: str = "en") -> list[CuisineRecord]:
        raw = await self._client.fetch("cuisines", to_cuisine_catalog())
        return from_cuisine_catalog(raw, locale)

    async def match(self, query: str, locale: str = "en") -> list[str]:
        return match_cuisines(await self.list(locale), query)
