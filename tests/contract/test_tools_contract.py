from __future__ import annotations

import httpx
import pytest


@pytest.fixture()
def tools_app(upstream):
    from services.reservations.app.upstream import UpstreamClient

    UpstreamClient.set_default_transport(upstream.transport)
    from services.reservations.app.main import app

    yield app
    UpstreamClient.set_default_transport(None)


@pytest.mark.asyncio
async def test_list_tools_exposes_four_tools(tools_app):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/tools")
        assert r.status_code == 200
        tools = {t["name"]: t for t in r.json()["tools"]}
        assert set(tools) == {
            "search_restaurants",
            "get_restaurant_availability",
            "list_cuisines",
            "generate_reservation_link",
        }
        assert set(tools["get_restaurant_availability"]["input_schema"]["required"]) == {
            "shop_id",
            "start_at",
            "num_people",
        }


@pytest.mark.asyncio
async def test_search_restaurants_combined(tools_app, upstream):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post(
            "/tools/search_restaurants",
            json={"query": "sushi", "location": "Ginza", "num_people": 2, "time": "19:00"},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["is_error"] is False
        assert body["counts"] == {"restaurants": 4, "text_search": 2, "filtered_search": 2}
        assert [x["slug"] for x in body["restaurants"][:2]] == ["sushi-saito", "curry-kitchen"]
        assert "time=19:00" in body["restaurants"][0]["reservation_url"]
        assert body["text"].startswith('Found 4 restaurants for "sushi"')

    shop_search = upstream.last("/shop_search").url.params
    assert shop_search.get("geo_distance") == "5km"
    assert shop_search.get("geo_latitude") == "35.6717"
    assert shop_search.get("availability_mode") == "same_meal_time"


@pytest.mark.asyncio
async def test_search_restaurants_upstream_failure_is_error_result(tools_app, upstream):
    upstream.respond("/shop_search", 429, {"errors": ["rate limited"]})
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/tools/search_restaurants", json={"num_people": 2})
        assert r.status_code == 200
        body = r.json()
        assert body["is_error"] is True
        assert body["error"] == {"kind": "rate_limited", "message": "Rate limit exceeded", "status_code": 429}
        assert body["text"] == "Error searching restaurants: Rate limit exceeded"
        assert body["restaurants"] == []


@pytest.mark.asyncio
async def test_search_restaurants_invalid_input_never_reaches_upstream(tools_app, upstream):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/tools/search_restaurants", json={"num_people": 50, "time": "25:99"})
        assert r.status_code == 422
        body = r.json()
        assert body["is_error"] is True
        assert body["error"]["kind"] == "validation"
        assert "num_people" in body["error"]["message"]
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_search_restaurants_rejects_extra_fields(tools_app):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/tools/search_restaurants", json={"query": "sushi", "extra": "nope"})
        assert r.status_code == 422


@pytest.mark.asyncio
async def test_get_restaurant_availability(tools_app, upstream):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post(
            "/tools/get_restaurant_availability",
            json={"shop_id": "ginza-yakiniku", "start_at": "2025-07-15T00:00:00.000Z", "num_people": 2},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["slots"] == [
            {"date": "2025-07-15", "time": "18:00", "available": True, "party_size": 2},
            {"date": "2025-07-15", "time": "19:00", "available": False, "party_size": 2},
        ]
        assert "18:00 (2 people)" in body["text"]
    assert upstream.json_body("/hub/availability_calendar")["num_people"] == "2"


@pytest.mark.asyncio
async def test_get_restaurant_availability_not_found(tools_app, upstream):
    upstream.respond("/hub/availability_calendar", 404, {"errors": ["shop not found"]})
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post(
            "/tools/get_restaurant_availability",
            json={"shop_id": "missing", "start_at": "2025-07-15T00:00:00Z", "num_people": 2},
        )
        body = r.json()
        assert r.status_code == 200
        assert body["is_error"] is True
        assert body["error"]["kind"] == "not_found"
        assert body["text"] == "Error getting availability: Restaurant not found"


@pytest.mark.asyncio
async def test_get_restaurant_availability_requires_party_size(tools_app, upstream):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post(
            "/tools/get_restaurant_availability",
            json={"shop_id": "s", "start_at": "2025-07-15T00:00:00Z"},
        )
        assert r.status_code == 422
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_list_cuisines_japanese(tools_app):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/tools/list_cuisines", json={"locale": "jp"})
        assert r.status_code == 200
        body = r.json()
        assert [c["id"] for c in body["cuisines"]] == ["indian-curry", "sushi", "yakiniku"]
        assert body["text"].startswith("Available cuisines (3 total):")


@pytest.mark.asyncio
async def test_generate_reservation_link(tools_app, upstream):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        payload = {"shop_id": "sushi-saito", "num_people": 2, "time": "19:00"}
        r1 = await client.post("/tools/generate_reservation_link", json=payload)
        r2 = await client.post("/tools/generate_reservation_link", json=payload)
        assert r1.status_code == 200
        url = r1.json()["reservation_url"]
        assert url == r2.json()["reservation_url"]
        assert url.startswith("https://www.tablecheck.com/en/sushi-saito?")
        assert "time=19:00" in url
        assert "availability_mode=same_meal_time" in url
        assert "- Time: 19:00" in r1.json()["text"]
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_healthz_and_metrics(tools_app):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/healthz")).json() == {"ok": True}
        r = await client.get("/metrics")
        assert r.status_code == 200
        assert "reservations_http_latency_ms" in r.text


@pytest.mark.asyncio
async def test_search_restaurants_blank_location_sends_no_geo_filter(tools_app, upstream):
    transport = httpx.ASGITransport(app=tools_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/tools/search_restaurants", json={"location": "", "num_people": 2})
        assert r.status_code == 200
        assert r.json()["is_error"] is False

    params = upstream.last("/shop_search").url.params
    assert "geo_latitude" not in params
    assert "geo_distance" not in params
