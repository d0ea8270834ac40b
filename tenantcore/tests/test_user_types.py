"""
Tests for the user type endpoints.
"""
import pytest

from tenantcore.tests.utils import API, auth_headers, user_type_id


@pytest.mark.asyncio
async def test_list_requires_authentication(client):
    response = await client.get(f"{API}/user-types")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_and_search(client):
    headers = await auth_headers(client, "reader@example.com")
    response = await client.get(f"{API}/user-types", headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["meta"]["total"] == 3
    assert {t["code"] for t in data["data"]} == {"SUPER_ADMIN", "ADMIN", "USER"}

    response = await client.get(f"{API}/user-types", params={"search": "admin"}, headers=headers)
    assert {t["code"] for t in response.json()["data"]["data"]} == {"SUPER_ADMIN", "ADMIN"}


@pytest.mark.asyncio
async def test_active_sorted_by_name(client):
    headers = await auth_headers(client, "reader@example.com")
    response = await client.get(f"{API}/user-types/active", headers=headers)
    names = [t["name"] for t in response.json()["data"]]
    assert names == sorted(names)


@pytest.mark.asyncio
async def test_get_by_id_and_code(client):
    headers = await auth_headers(client, "reader@example.com")
    admin_id = await user_type_id("ADMIN")

    by_id = await client.get(f"{API}/user-types/{admin_id}", headers=headers)
    assert by_id.json()["data"]["code"] == "ADMIN"

    by_code = await client.get(f"{API}/user-types/code/admin", headers=headers)
    assert by_code.json()["data"]["id"] == admin_id

    missing = await client.get(f"{API}/user-types/code/nothing", headers=headers)
    assert missing.status_code == 200
    assert missing.json()["data"] is None
    assert missing.json()["message"] == "User type not found"


@pytest.mark.asyncio
async def test_create_requires_super_admin(client):
    headers = await auth_headers(client, "admin@example.com", code="ADMIN")
    response = await client.post(f"{API}/user-types", json={"name": "Editor", "code": "EDITOR"}, headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_update_delete(client):
    headers = await auth_headers(client, "root@example.com", code="SUPER_ADMIN")

    created = await client.post(
        f"{API}/user-types", json={"name": "Editor", "code": "editor_2"}, headers=headers
    )
    assert created.status_code == 201
    user_type = created.json()["data"]
    assert user_type["code"] == "EDITOR_2"
    assert user_type["is_active"] is True

    duplicate = await client.post(f"{API}/user-types", json={"name": "Again", "code": "EDITOR_2"}, headers=headers)
    assert duplicate.status_code == 409

    updated = await client.patch(
        f"{API}/user-types/{user_type['id']}", json={"description": "Edits content"}, headers=headers
    )
    assert updated.json()["data"]["description"] == "Edits content"
    assert updated.json()["data"]["name"] == "Editor"

    deleted = await client.delete(f"{API}/user-types/{user_type['id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"deleted": True}

    gone = await client.get(f"{API}/user-types/{user_type['id']}", headers=headers)
    assert gone.json()["data"] is None


@pytest.mark.asyncio
async def test_invalid_code_rejected(client):
    headers = await auth_headers(client, "root@example.com", code="SUPER_ADMIN")
    response = await client.post(f"{API}/user-types", json={"name": "Bad", "code": "1-bad"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_system_types_are_protected(client):
    headers = await auth_headers(client, "root@example.com", code="SUPER_ADMIN")
    user_id = await user_type_id("USER")

    deleted = await client.delete(f"{API}/user-types/{user_id}", headers=headers)
    assert deleted.status_code == 409
    assert deleted.json()["message"] == "Cannot delete system user types"

    toggled = await client.patch(f"{API}/user-types/{user_id}/toggle-active", headers=headers)
    assert toggled.status_code == 409
    assert toggled.json()["message"] == "Cannot deactivate system user types"


@pytest.mark.asyncio
async def test_toggle_custom_type(client):
    headers = await auth_headers(client, "root@example.com", code="SUPER_ADMIN")
    created = await client.post(f"{API}/user-types", json={"name": "Guest", "code": "GUEST"}, headers=headers)
    type_id = created.json()["data"]["id"]

    off = await client.patch(f"{API}/user-types/{type_id}/toggle-active", headers=headers)
    assert off.json()["data"]["is_active"] is False
    on = await client.patch(f"{API}/user-types/{type_id}/toggle-active", headers=headers)
    assert on.json()["data"]["is_active"] is True


@pytest.mark.asyncio
async def test_update_rejects_null_name_and_flag(client):
    headers = await auth_headers(client, "root@example.com", code="SUPER_ADMIN")
    created = await client.post(f"{API}/user-types", json={"name": "Viewer", "code": "VIEWER"}, headers=headers)
    type_id = created.json()["data"]["id"]

    for body in ({"name": None}, {"isActive": None}):
        response = await client.patch(f"{API}/user-types/{type_id}", json=body, headers=headers)
        assert response.status_code == 422, body
