import asyncio

import pytest
from httpx import AsyncClient

from tests.conftest import wait_until


@pytest.fixture()
def job_payload():
    return {
        "list_id": 7,
        "list_name": "Newsletter",
        "import_data": "a@x.com,Ann,Lee\n\nb@x.com",
        "delay": 0,
    }


async def create_account(client: AsyncClient) -> str:
    response = await client.post("/api/v1/accounts/", json={"name": "Main", "api_key": "xkeysib-1"})
    return response.json()["id"]


@pytest.mark.asyncio
async def test_start_job_and_follow_it(async_client: AsyncClient, api_engine, job_payload):
    account_id = await create_account(async_client)

    response = await async_client.post("/api/v1/jobs/", json={**job_payload, "account_id": account_id})
    assert response.status_code == 201
    job = response.json()
    assert job["status"] == "running"
    assert job["list_id"] == "7"
    assert job["total_contacts"] == 2

    await wait_until(lambda: api_engine.get_job(job["id"]).status.value == "completed")

    response = await async_client.get(f"/api/v1/jobs/{job['id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["progress"] == 100
    assert [r["index"] for r in body["results"]] == [2, 1]

    response = await async_client.get(f"/api/v1/accounts/{account_id}/job")
    assert response.json()["id"] == job["id"]

    response = await async_client.get("/api/v1/jobs/")
    assert list(response.json()) == [job["id"]]


@pytest.mark.asyncio
async def test_start_job_for_unknown_account(async_client: AsyncClient, job_payload):
    response = await async_client.post("/api/v1/jobs/", json={**job_payload, "account_id": "acc-missing"})
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_start_job_without_valid_contacts(async_client: AsyncClient, api_engine, job_payload):
    account_id = await create_account(async_client)

    response = await async_client.post(
        "/api/v1/jobs/",
        json={**job_payload, "account_id": account_id, "import_data": "\n,Jo,Do\n"},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "NO_VALID_CONTACTS"
    assert api_engine.jobs == {}


@pytest.mark.asyncio
async def test_start_job_rejects_negative_delay(async_client: AsyncClient, job_payload):
    account_id = await create_account(async_client)

    response = await async_client.post(
        "/api/v1/jobs/", json={**job_payload, "account_id": account_id, "delay": -1}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_job(async_client: AsyncClient):
    response = await async_client.get("/api/v1/jobs/job-missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_account_without_job(async_client: AsyncClient):
    account_id = await create_account(async_client)
    response = await async_client.get(f"/api/v1/accounts/{account_id}/job")
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["pause", "resume", "cancel"])
async def test_command_on_inactive_job_is_not_accepted(async_client: AsyncClient, command):
    response = await async_client.post(f"/api/v1/jobs/job-missing/{command}")
    assert response.status_code == 200
    assert response.json() == {"job_id": "job-missing", "accepted": False, "status": None}


@pytest.mark.asyncio
async def test_cancel_running_job(async_client: AsyncClient, api_engine, fake_client, job_payload):
    fake_client.gate = asyncio.Event()
    account_id = await create_account(async_client)
    response = await async_client.post("/api/v1/jobs/", json={**job_payload, "account_id": account_id})
    job_id = response.json()["id"]
    await wait_until(lambda: len(fake_client.submitted) == 1)

    response = await async_client.post(f"/api/v1/jobs/{job_id}/cancel")
    assert response.json() == {"job_id": job_id, "accepted": True, "status": "running"}

    fake_client.gate.set()
    await wait_until(lambda: api_engine.get_job(job_id).status.value == "cancelled")

    response = await async_client.post(f"/api/v1/jobs/{job_id}/cancel")
    assert response.json() == {"job_id": job_id, "accepted": False, "status": "cancelled"}


@pytest.mark.asyncio
async def test_job_events_feed(async_client: AsyncClient, api_engine, job_payload):
    account_id = await create_account(async_client)
    response = await async_client.post("/api/v1/jobs/", json={**job_payload, "account_id": account_id})
    job_id = response.json()["id"]
    await wait_until(lambda: api_engine.get_job(job_id).status.value == "completed")

    response = await async_client.get("/api/v1/jobs/events", params={"limit": 5})
    assert response.status_code == 200
    titles = [e["title"] for e in response.json() if e["job_id"] == job_id]
    assert titles == ["Starting Job", "Job Completed"]
