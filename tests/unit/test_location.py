from __future__ import annotations

import pytest


def test_resolve_every_gazetteer_key_exactly() -> None:
    from services.reservations.app.location import TOKYO_GAZETTEER, LocationResolver

    resolver = LocationResolver()
    for key, coord in TOKYO_GAZETTEER.items():
        assert resolver.resolve(key) == coord


def test_resolve_unknown_place_returns_default_anchor() -> None:
    from services.reservations.app.location import DEFAULT_ANCHOR, LocationResolver

    assert LocationResolver().resolve("nonexistent-place-xyz") == DEFAULT_ANCHOR


def test_resolve_is_case_and_whitespace_insensitive() -> None:
    from services.reservations.app.location import LocationResolver

    resolver = LocationResolver()
    assert resolver.resolve("SHIBUYA") == resolver.resolve("shibuya")
    assert resolver.resolve("  Ginza ") == resolver.resolve("ginza")


def test_resolve_input_containing_a_key() -> None:
    from services.reservations.app.location import TOKYO_GAZETTEER, LocationResolver

    assert LocationResolver().resolve("near shibuya crossing") == TOKYO_GAZETTEER["shibuya"]


def test_resolve_input_contained_in_a_key() -> None:
    from services.reservations.app.location import TOKYO_GAZETTEER, LocationResolver

    assert LocationResolver().resolve("Tokyo") == TOKYO_GAZETTEER["tokyo station"]


def test_resolve_first_match_in_table_order_wins() -> None:
    from services.reservations.app.location import TOKYO_GAZETTEER, LocationResolver

    # Both "shinjuku" and "shinjuku-west" match; "shinjuku" comes first in the table.
    assert LocationResolver().resolve("shinjuku-we") == TOKYO_GAZETTEER["shinjuku"]


def test_resolve_blank_input_returns_default_anchor() -> None:
    from services.reservations.app.location import DEFAULT_ANCHOR, LocationResolver

    assert LocationResolver().resolve("") == DEFAULT_ANCHOR
    assert LocationResolver().resolve("   ") == DEFAULT_ANCHOR
    assert LocationResolver().resolve(None) == DEFAULT_ANCHOR


def test_gazetteer_is_read_only() -> None:
    from services.reservations.app.location import TOKYO_GAZETTEER
    from services.reservations.app.schemas import Coordinate

    with pytest.raises(TypeError):
        TOKYO_GAZETTEER["atlantis"] = Coordinate(lat=0, lng=0)  # type: ignore[index]


def test_custom_gazetteer_and_default() -> None:
    from services.reservations.app.location import LocationResolver
    from services.reservations.app.schemas import Coordinate

    osaka = Coordinate(lat=34.6937, lng=135.5023)
    umeda = Coordinate(lat=34.7025, lng=135.4959)
    resolver = LocationResolver(gazetteer={"umeda": umeda}, default=osaka)
    assert resolver.resolve("Umeda") == umeda
    assert resolver.resolve("namba") == osaka


def test_distance_km_between_tokyo_station_and_shibuya() -> None:
    from services.reservations.app.location import TOKYO_GAZETTEER, distance_km

    d = distance_km(TOKYO_GAZETTEER["tokyo station"], TOKYO_GAZETTEER["shibuya"])
    assert 6.0 < d < 7.0
    assert distance_km(TOKYO_GAZETTEER["ginza"], TOKYO_GAZETTEER["ginza"]) == pytest.approx(0.0)
