"""
Tests for the generic CRUD service, exercised through concrete services.
"""
import pytest
from fastapi import HTTPException

from tenantcore.base_microservice import AsyncSessionLocal
from tenantcore.database.crud import PaginationParams
from tenantcore.organizations.service import OrganizationService
from tenantcore.users.service import UserService
from tenantcore.tests.utils import create_organization, create_user


@pytest.mark.asyncio
async def test_find_all_clamps_page_and_limit():
    for i in range(3):
        await create_organization(f"Org {i}")
    async with AsyncSessionLocal() as db:
        service = OrganizationService(db)
        page = await service.find_all(page=0, limit=1000)
        assert page.page == 1
        assert page.limit == 100
        assert page.total == 4

        page = await service.find_all(page=2, limit=3)
        assert len(page.rows) == 1
        meta = page.meta
        assert meta.total_pages == 2
        assert meta.has_prev_page and not meta.has_next_page


@pytest.mark.asyncio
async def test_sorting_and_unknown_sort_field():
    for name in ("Bravo", "Alpha", "Charlie"):
        await create_organization(name)
    async with AsyncSessionLocal() as db:
        service = OrganizationService(db)
        ascending = await service.find_all(sort_by="name", sort_order="asc")
        assert [o.name for o in ascending.rows][:3] == ["Alpha", "Bravo", "Charlie"]

        camel = await service.find_all(sort_by="createdAt", sort_order="ASC")
        assert camel.rows[0].name == "Default Organization"

        # unknown column falls back to created_at DESC
        fallback = await service.find_all(sort_by="drop table")
        assert fallback.rows[0].name == "Charlie"


@pytest.mark.asyncio
async def test_find_all_from_params_searches():
    await create_organization("Searchable Inc")
    async with AsyncSessionLocal() as db:
        page = await OrganizationService(db).find_all_from_params(PaginationParams(search="searchable"))
        assert [o.name for o in page.rows] == ["Searchable Inc"]


@pytest.mark.asyncio
async def test_soft_delete_hides_rows_until_restored():
    org_id = await create_organization("Temporary")
    async with AsyncSessionLocal() as db:
        service = OrganizationService(db)
        assert await service.exists(org_id)
        before = await service.count()

        assert await service.soft_delete(org_id) is True
        assert await service.find_one(org_id) is None
        assert not await service.exists(org_id)
        assert await service.count() == before - 1
        included = await service.find_all(include_deleted=True)
        assert org_id in [o.id for o in included.rows]

        restored = await service.restore(org_id)
        assert restored.deleted_at is None
        assert await service.exists_by_uuid(restored.uuid)


@pytest.mark.asyncio
async def test_find_one_or_fail_message():
    async with AsyncSessionLocal() as db:
        with pytest.raises(HTTPException) as exc:
            await OrganizationService(db).find_one_or_fail(4242)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Organization with ID 4242 not found"


@pytest.mark.asyncio
async def test_hard_delete():
    org_id = await create_organization("Disposable")
    async with AsyncSessionLocal() as db:
        service = OrganizationService(db)
        assert await service.delete(org_id) is True
        remaining = await service.find_all(include_deleted=True, where=[service.model.id == org_id])
        assert remaining.total == 0
        with pytest.raises(HTTPException):
            await service.restore(org_id)


@pytest.mark.asyncio
async def test_organization_scoped_helpers():
    home = await create_organization("Home")
    away = await create_organization("Away")
    mine = await create_user("mine@example.com", organization_id=home)
    await create_user("theirs@example.com", organization_id=away)
    async with AsyncSessionLocal() as db:
        service = UserService(db)
        page = await service.find_all_by_organization(home)
        assert [u.email for u in page.rows] == ["mine@example.com"]

        assert (await service.find_one_by_organization(mine, home)).email == "mine@example.com"
        assert await service.find_one_by_organization(mine, away) is None
        with pytest.raises(HTTPException) as exc:
            await service.find_one_by_organization_or_fail(mine, away)
        assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally():
    await create_organization("Plain")
    await create_organization("Under_score")
    await create_organization("Hundred%")
    async with AsyncSessionLocal() as db:
        service = OrganizationService(db)
        underscore = await service.find_all(search="_")
        assert [o.name for o in underscore.rows] == ["Under_score"]
        percent = await service.find_all(search="%")
        assert [o.name for o in percent.rows] == ["Hundred%"]
