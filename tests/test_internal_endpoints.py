from datetime import datetime, timedelta, timezone

import pytest


@pytest.mark.asyncio
async def test_recent_events_newest_first(client, add_site, auth_headers):
    await add_site("abc123")
    for name in ("pageview", "button_click", "form_submit"):
        await client.post("/api/collect", json={"site": "abc123", "event": name, "props": {"test": True}})

    response = await client.get("/api/sites/abc123/events?limit=2", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [event["event"] for event in body["events"]] == ["form_submit", "button_click"]
    assert body["events"][0]["deviceType"] == "unknown"
    assert body["events"][0]["props"] == {"test": True}
    assert "createdAt" in body["events"][0]


@pytest.mark.asyncio
async def test_recent_events_empty_site(client, add_site, auth_headers):
    await add_site("abc123")

    response = await client.get("/api/sites/abc123/events", headers=auth_headers)

    assert response.json() == {"events": [], "total": 0}


@pytest.mark.asyncio
async def test_recent_events_unknown_site(client, auth_headers):
    response = await client.get("/api/sites/nope/events", headers=auth_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "Basic abc"}])
async def test_internal_endpoints_require_token(client, headers):
    assert (await client.get("/api/sites/abc123/events", headers=headers)).status_code in (401, 403)
    assert (await client.post("/api/maintenance/expire-temp-sites", headers=headers)).status_code in (401, 403)


@pytest.mark.asyncio
async def test_recent_events_limit_is_bounded(client, add_site, auth_headers):
    await add_site("abc123")

    response = await client.get("/api/sites/abc123/events?limit=1000", headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_expire_temp_sites_endpoint(client, add_site, auth_headers):
    now = datetime.now(timezone.utc)
    await add_site("TEMP_OLD", is_temp=True, expires_at=now - timedelta(minutes=10))
    await add_site("TEMP_NEW", is_temp=True, expires_at=now + timedelta(minutes=50))

    response = await client.post("/api/maintenance/expire-temp-sites", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["removed"] == 1
    assert response.json()["success"] is True

    again = await client.get("/api/maintenance/expire-temp-sites", headers=auth_headers)
    assert again.json()["removed"] == 0


@pytest.mark.asyncio
async def test_expiry_drops_cached_site_config(client, add_site, resolver, auth_headers):
    await add_site("TEMP_OLD", is_temp=True, expires_at=datetime.now(timezone.utc) - timedelta(minutes=10))
    await add_site("abc123")
    await resolver.resolve("abc123")
    assert "abc123" in resolver._cache

    response = await client.post("/api/maintenance/expire-temp-sites", headers=auth_headers)

    assert response.json()["removed"] == 1
    assert resolver._cache == {}
