from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from taskdesk.core.database import aget_db
from taskdesk.core.limiter import limiter
from taskdesk.main import app
from taskdesk.utils.clock import get_clock

PDF = {
    "file_name": "report.pdf",
    "file_path": "/uploads/report.pdf",
    "file_size": 2048,
    "mime_type": "application/pdf",
}


@pytest.fixture
async def client(db_manager, clock):
    async def override_db():
        async with db_manager.get_session() as session:
            yield session

    app.dependency_overrides[aget_db] = override_db
    app.dependency_overrides[get_clock] = lambda: clock
    limiter.enabled = False
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
async def employee_id(client):
    response = await client.post(
        "/api/v1/employees",
        json={"first_name": "Yaw", "last_name": "Asante", "email": "yaw@example.com"},
    )
    assert response.status_code == 201
    return response.json()["employee_id"]


async def assign(client, clock, employee_id, hours=1):
    response = await client.post(
        f"/api/v1/employees/{employee_id}/tasks",
        json={
            "title": "Write onboarding guide",
            "description": "Cover laptop setup and accounts",
            "category": "Documentation",
            "deadline": (clock.now() + timedelta(hours=hours)).isoformat(),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_health_check(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


async def test_full_lifecycle(client, clock, employee_id):
    task = await assign(client, clock, employee_id)
    assert task["status"] == "new"

    response = await client.post(f"/api/v1/tasks/{task['task_id']}/accept")
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    response = await client.post(f"/api/v1/tasks/{task['task_id']}/documents", json={"documents": [PDF]})
    assert response.status_code == 201
    assert response.json()["status"] == "pendingVerification"

    response = await client.get("/api/v1/tasks/pending-verification")
    assert [item["task"]["task_id"] for item in response.json()] == [task["task_id"]]

    response = await client.post(
        f"/api/v1/tasks/{task['task_id']}/review",
        json={"decision": "approve", "reviewer_id": "admin-7"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["verified_by"] == "admin-7"

    response = await client.get(f"/api/v1/employees/{employee_id}")
    counts = response.json()["task_counts"]
    assert counts["completed"] == 1
    assert counts["total"] == 1
    assert counts["completion_rate"] == 100.0


async def test_accept_completed_task_returns_conflict(client, clock, employee_id):
    task = await assign(client, clock, employee_id)
    await client.post(f"/api/v1/tasks/{task['task_id']}/accept")
    await client.post(f"/api/v1/tasks/{task['task_id']}/documents", json={"documents": [PDF]})
    await client.post(f"/api/v1/tasks/{task['task_id']}/review", json={"decision": "approve"})

    response = await client.post(f"/api/v1/tasks/{task['task_id']}/accept")
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "INVALID_TRANSITION"
    assert body["current_status"] == "completed"


async def test_empty_submission_returns_no_evidence(client, clock, employee_id):
    task = await assign(client, clock, employee_id)
    await client.post(f"/api/v1/tasks/{task['task_id']}/accept")

    response = await client.post(f"/api/v1/tasks/{task['task_id']}/documents", json={"documents": []})
    assert response.status_code == 400
    assert response.json()["code"] == "NO_EVIDENCE"

    response = await client.get(f"/api/v1/tasks/{task['task_id']}")
    assert response.json()["status"] == "active"


async def test_disallowed_mime_type_is_rejected(client, clock, employee_id):
    task = await assign(client, clock, employee_id)
    await client.post(f"/api/v1/tasks/{task['task_id']}/accept")
    response = await client.post(
        f"/api/v1/tasks/{task['task_id']}/documents",
        json={"documents": [{**PDF, "mime_type": "application/x-msdownload"}]},
    )
    assert response.status_code == 422


async def test_deadline_too_soon(client, clock, employee_id):
    response = await client.post(
        f"/api/v1/employees/{employee_id}/tasks",
        json={
            "title": "Too soon",
            "description": "Deadline inside the grace window",
            "category": "Meeting",
            "deadline": (clock.now() + timedelta(seconds=5)).isoformat(),
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DEADLINE"


async def test_check_expired(client, clock, employee_id):
    task = await assign(client, clock, employee_id)
    await client.post(f"/api/v1/tasks/{task['task_id']}/accept")
    clock.advance(hours=1, seconds=1)

    response = await client.post("/api/v1/tasks/check-expired")
    assert response.status_code == 200
    assert response.json()["updated_count"] == 1

    response = await client.post("/api/v1/tasks/check-expired")
    assert response.json()["updated_count"] == 0


async def test_accept_expired_task(client, clock, employee_id):
    task = await assign(client, clock, employee_id)
    clock.advance(hours=2)
    response = await client.post(f"/api/v1/tasks/{task['task_id']}/accept")
    assert response.status_code == 409
    assert response.json()["code"] == "TASK_EXPIRED"


async def test_unknown_ids(client):
    response = await client.get("/api/v1/tasks/does-not-exist")
    assert response.status_code == 404
    assert response.json()["code"] == "TASK_NOT_FOUND"

    response = await client.get("/api/v1/employees/does-not-exist")
    assert response.status_code == 404


async def test_duplicate_employee(client, employee_id):
    response = await client.post(
        "/api/v1/employees",
        json={"first_name": "Yaw", "email": "yaw@example.com"},
    )
    assert response.status_code == 409


async def test_categories(client):
    response = await client.get("/api/v1/tasks/categories/list")
    names = [category["name"] for category in response.json()["categories"]]
    assert "Development" in names
