"""Job, resource and account API endpoint tests."""

import uuid

import pytest

from mockjson.models.user import User


def auth(user: User) -> dict[str, str]:
    return {"X-User-Id": str(user.id)}


@pytest.mark.asyncio
async def test_health_check(test_client):
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(test_client):
    response = await test_client.get(f"/api/jobs/{uuid.uuid4()}")
    assert response.status_code == 401

    response = await test_client.get(
        f"/api/jobs/{uuid.uuid4()}", headers={"X-User-Id": "not-a-uuid"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_submit_job_runs_to_completion(test_client, user):
    response = await test_client.post(
        "/api/jobs",
        json={
            "project_id": "project-1",
            "prompt": "list 3 fruits",
            "objects_count": 3,
            "resource_type": "fruit",
            "fields": [{"label": "name", "type": "string"}],
        },
        headers=auth(user),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["item_count"] == 3
    assert body["provider_used"] == "fake-model"

    job = (await test_client.get(f"/api/jobs/{body['job_id']}", headers=auth(user))).json()
    assert job["status"] == "completed"
    assert [record["id"] for record in job["result"]] == [1, 2, 3]
    assert job["metadata"]["resource_type"] == "fruit"

    account = (await test_client.get("/api/users/me", headers=auth(user))).json()
    assert account["credits"] == 990


@pytest.mark.asyncio
async def test_submit_job_insufficient_credits(test_client, session):
    broke = User(email="broke@example.com", credits=0)
    session.add(broke)
    await session.commit()

    response = await test_client.post(
        "/api/jobs",
        json={"project_id": "p", "prompt": "list 3 fruits", "objects_count": 3},
        headers=auth(broke),
    )
    assert response.status_code == 402


@pytest.mark.asyncio
async def test_submit_job_validation(test_client, user):
    response = await test_client.post(
        "/api/jobs",
        json={"project_id": "p", "prompt": "list fruits", "objects_count": 0},
        headers=auth(user),
    )
    assert response.status_code == 422

    response = await test_client.post(
        "/api/jobs",
        json={"project_id": "p", "prompt": "list fruits", "objects_count": 500},
        headers=auth(user),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_job_of_other_user_is_not_found(test_client, user, pro_user):
    created = await test_client.post(
        "/api/jobs",
        json={"project_id": "p", "prompt": "list 3 fruits", "objects_count": 3},
        headers=auth(user),
    )
    job_id = created.json()["job_id"]

    response = await test_client.get(f"/api/jobs/{job_id}", headers=auth(pro_user))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_latest_job_for_project(test_client, user):
    response = await test_client.get("/api/projects/p/jobs/latest", headers=auth(user))
    assert response.status_code == 200
    assert response.json() is None

    created = await test_client.post(
        "/api/jobs",
        json={"project_id": "p", "prompt": "list 3 fruits", "objects_count": 3},
        headers=auth(user),
    )
    latest = await test_client.get("/api/projects/p/jobs/latest", headers=auth(user))
    assert latest.json()["id"] == created.json()["job_id"]


@pytest.mark.asyncio
async def test_retry_completed_job_conflicts(test_client, user):
    created = await test_client.post(
        "/api/jobs",
        json={"project_id": "p", "prompt": "list 3 fruits", "objects_count": 3},
        headers=auth(user),
    )
    job_id = created.json()["job_id"]

    response = await test_client.post(f"/api/jobs/{job_id}/retry", headers=auth(user))
    assert response.status_code == 409
    assert response.json()["detail"] == "Can only retry failed jobs"


@pytest.mark.asyncio
async def test_resource_lifecycle(test_client, user):
    created = await test_client.post(
        "/api/resources",
        json={"project_id": "p", "name": "users", "data": [{"id": 1, "name": "Ada"}]},
        headers=auth(user),
    )
    assert created.status_code == 201
    resource_id = created.json()["id"]

    toggled = await test_client.post(f"/api/resources/{resource_id}/live", headers=auth(user))
    assert toggled.json()["live"] is True

    explicit = await test_client.post(
        f"/api/resources/{resource_id}/live", json={"live": False}, headers=auth(user)
    )
    assert explicit.json()["live"] is False

    fetched = await test_client.get(f"/api/resources/{resource_id}", headers=auth(user))
    assert fetched.json()["data"] == [{"id": 1, "name": "Ada"}]

    deleted = await test_client.delete(f"/api/resources/{resource_id}", headers=auth(user))
    assert deleted.status_code == 204
    missing = await test_client.get(f"/api/resources/{resource_id}", headers=auth(user))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_resource_free_limit_is_forbidden(test_client, user):
    for name in ("one", "two"):
        response = await test_client.post(
            "/api/resources",
            json={"project_id": "p", "name": name, "data": []},
            headers=auth(user),
        )
        assert response.status_code == 201

    response = await test_client.post(
        "/api/resources",
        json={"project_id": "p", "name": "three", "data": []},
        headers=auth(user),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_account_reports_current_usage(test_client, user):
    response = await test_client.get("/api/users/me", headers=auth(user))

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "free@example.com"
    assert body["is_pro"] is False
    assert body["api_requests_this_month"] == 0
    assert body["monthly_api_limit"] == 1000


@pytest.mark.asyncio
async def test_account_unknown_user(test_client):
    response = await test_client.get("/api/users/me", headers={"X-User-Id": str(uuid.uuid4())})
    assert response.status_code == 404
