import pytest

from tenantcore.base_microservice import ApiResponse, BaseMicroservice, ErrorResponse
from tenantcore.tests.utils import API


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["apiPrefix"] == API


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["services"]["auth"] == "online"


@pytest.mark.asyncio
async def test_not_found_uses_error_envelope(client):
    response = await client.get(f"{API}/nowhere")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "message": "Not Found",
        "error": "Not Found",
        "errorCode": 404,
    }


@pytest.mark.asyncio
async def test_validation_error_envelope(client):
    response = await client.post(f"{API}/auth/login", json={"email": "not-an-email"})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["errorCode"] == 422
    assert isinstance(body["error"], list)


def test_envelopes():
    import json

    ok = json.loads(BaseMicroservice().success_response("done", {"a": 1}, status_code=201).body)
    assert ok == {"success": True, "message": "done", "data": {"a": 1}}

    assert ApiResponse(None).status_code == 200
    error = ErrorResponse("bad", error={"field": "x"}, status_code=400)
    assert error.status_code == 400
    assert json.loads(error.body)["errorCode"] == 400
