"""Public live-data endpoint tests: status mapping, quota headers, CORS, burst limit."""

import uuid

import pytest
import pytest_asyncio

from mockjson.core.timezone import current_period_key
from mockjson.models.resource import Resource
from mockjson.models.user import User
from mockjson.services.rate_limiter import SlidingWindowRateLimiter


@pytest_asyncio.fixture
async def live_resource(session, user) -> Resource:
    resource = Resource(
        user_id=user.id, project_id="p", name="fruits", data=[{"id": 1, "name": "Apple"}], live=True
    )
    session.add(resource)
    await session.commit()
    return resource


@pytest.mark.asyncio
async def test_serves_live_resource(test_client, live_resource):
    response = await test_client.get(
        "/api/get-resource", params={"resourceID": str(live_resource.id)}
    )

    assert response.status_code == 200
    assert response.json() == [{"id": 1, "name": "Apple"}]
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["x-ratelimit-limit"] == "1000"
    assert response.headers["x-ratelimit-remaining"] == "999"


@pytest.mark.asyncio
async def test_missing_resource_id(test_client):
    response = await test_client.get("/api/get-resource")

    assert response.status_code == 400
    assert response.json() == {"error": "Bad Request", "message": "resourceID required"}
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_unknown_resource(test_client):
    response = await test_client.get("/api/get-resource", params={"resourceID": str(uuid.uuid4())})
    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"
    assert response.json()["message"]


@pytest.mark.asyncio
async def test_not_live_resource(test_client, session, user):
    resource = Resource(user_id=user.id, project_id="p", name="draft", data=[])
    session.add(resource)
    await session.commit()

    response = await test_client.get("/api/get-resource", params={"resourceID": str(resource.id)})
    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"


@pytest.mark.asyncio
async def test_quota_exceeded(test_client, session):
    owner = User(
        email="full@example.com",
        api_requests_this_month=1000,
        api_requests_period=current_period_key(),
    )
    session.add(owner)
    await session.commit()
    resource = Resource(user_id=owner.id, project_id="p", name="x", data=[{"id": 1}], live=True)
    session.add(resource)
    await session.commit()

    response = await test_client.get("/api/get-resource", params={"resourceID": str(resource.id)})

    assert response.status_code == 429
    assert response.json()["error"] == "Too Many Requests"
    assert response.headers["x-ratelimit-limit"] == "1000"
    assert response.headers["x-ratelimit-remaining"] == "0"
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_burst_limit_precedes_quota(test_client, uow_factory, live_resource, user):
    from mockjson.app import app

    app.state.rate_limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60)
    params = {"resourceID": str(live_resource.id)}

    statuses = []
    for _ in range(3):
        response = await test_client.get("/api/get-resource", params=params)
        statuses.append(response.status_code)
    limited = await test_client.get("/api/get-resource", params=params)

    assert statuses == [200, 200, 429]
    assert limited.json()["error"] == "Too Many Requests"
    assert int(limited.headers["retry-after"]) >= 1

    # Burst-limited requests never reach quota accounting
    async with await uow_factory() as uow:
        owner = await uow.users.get_by_id(user.id)
    assert owner.api_requests_this_month == 2
