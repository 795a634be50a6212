from __future__ import annotations

import math
from collections.abc import Mapping
from types import MappingProxyType

from services.reservations.app.schemas import Coordinate
from services.reservations.app.settings import SETTINGS


def _gazetteer(entries: dict[str, tuple[float, float]]) -> Mapping[str, Coordinate]:
    return MappingProxyType({name: Coordinate(lat=lat, lng=lng) for name, (lat, lng) in entries.items()})


# Tokyo-area place names. Order matters: substring fallback takes the first hit.
TOKYO_GAZETTEER: Mapping[str, Coordinate] = _gazetteer(
    {
        "shibuya": (35.6596, 139.7006),
        "shinjuku": (35.6938, 139.7034),
        "tokyo station": (35.6812, 139.7671),
        "ginza": (35.6717, 139.7653),
        "harajuku": (35.6703, 139.7027),
        "roppongi": (35.6627, 139.7321),
        "akasaka": (35.6735, 139.7377),
        "asakusa": (35.7148, 139.7967),
        "ikebukuro": (35.7295, 139.7109),
        "ueno": (35.7138, 139.7774),
        "nakameguro": (35.6436, 139.6983),
        "ebisu": (35.6467, 139.7102),
        "daikanyama": (35.6496, 139.6993),
        "tsukiji": (35.6654, 139.7707),
        "yokohama": (35.4437, 139.6380),
        "kamakura": (35.3192, 139.5491),
        "odaiba": (35.6269, 139.7767),
        "akihabara": (35.7022, 139.7742),
        "jimbocho": (35.6952, 139.7577),
        "kagurazaka": (35.7022, 139.7401),
        "nihonbashi": (35.6833, 139.7744),
        "marunouchi": (35.6792, 139.7644),
        "otemachi": (35.6847, 139.7678),
        "hibiya": (35.6739, 139.7593),
        "kasumigaseki": (35.6738, 139.7521),
        "toranomon": (35.6695, 139.7496),
        "shimbashi": (35.6657, 139.7587),
        "yurakucho": (35.6751, 139.7634),
        "omote-sando": (35.6658, 139.7128),
        "takeshita-dori": (35.6703, 139.7027),
        "meiji-jingu": (35.6764, 139.6993),
        "yoyogi": (35.6837, 139.7020),
        "sangenjaya": (35.6430, 139.6685),
        "shimokitazawa": (35.6613, 139.6681),
        "kichijoji": (35.7033, 139.5806),
        "shinjuku-south": (35.6896, 139.7006),
        "shinjuku-east": (35.6938, 139.7051),
        "shinjuku-west": (35.6916, 139.6993),
    }
)

DEFAULT_ANCHOR = Coordinate(lat=SETTINGS.default_lat, lng=SETTINGS.default_lng)


class LocationResolver:
    """
    Maps colloquial place names to coordinates. Never fails: unknown places resolve to the default anchor
    so a vague location never blocks a search.
    """

    def __init__(
        self,
        gazetteer: Mapping[str, Coordinate] = TOKYO_GAZETTEER,
        default: Coordinate = DEFAULT_ANCHOR,
    ) -> None:
        self._gazetteer = gazetteer
        self._default = default

    def resolve(self, text: str | None) -> Coordinate:
        normalized = (text or "").strip().lower()
        if not normalized:
            return self._default

        hit = self._gazetteer.get(normalized)
        if hit is not None:
            return hit

        for key, coord in self._gazetteer.items():
            if key in normalized or normalized in key:
                return coord

        return self._default


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in kilometers."""
    r = 6371.0
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlng / 2) ** 2
    return r * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
