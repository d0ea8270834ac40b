"""
Shared helpers for the test-suite: direct database setup and login shortcuts.
"""
from typing import Optional

from httpx import AsyncClient
from sqlalchemy import select

from tenantcore.auth.passwords import PasswordService
from tenantcore.base_microservice import AsyncSessionLocal
from tenantcore.database.models import Organization, User, UserType
from tenantcore.database.seed import DEFAULT_ORGANIZATION_UUID

API = "/api/v1"
PASSWORD = "Passw0rd!"


async def default_organization_id() -> int:
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(Organization.id).where(Organization.uuid == DEFAULT_ORGANIZATION_UUID)
        )
        return result.scalar_one()


async def create_organization(name: str = "Other Org") -> int:
    async with AsyncSessionLocal() as db:
        organization = Organization(name=name)
        db.add(organization)
        await db.commit()
        return organization.id


async def user_type_id(code: str) -> int:
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(UserType.id).where(UserType.code == code))
        return result.scalar_one()


async def create_user(
    email: str,
    code: str = "USER",
    organization_id: Optional[int] = None,
    password: str = PASSWORD,
    first_name: str = "Test",
    last_name: str = "User",
) -> int:
    """Insert a user directly and return its id."""
    organization_id = organization_id or await default_organization_id()
    type_id = await user_type_id(code)
    async with AsyncSessionLocal() as db:
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=PasswordService().hash(password),
            organization_id=organization_id,
            user_type_id=type_id,
        )
        db.add(user)
        await db.commit()
        return user.id


async def login(client: AsyncClient, email: str, password: str = PASSWORD, **headers) -> dict:
    response = await client.post(
        f"{API}/auth/login", json={"email": email, "password": password}, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


def bearer(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


async def auth_headers(
    client: AsyncClient, email: str, code: str = "USER", organization_id: Optional[int] = None
) -> dict:
    """Create a user of the given type and return headers for a fresh session."""
    await create_user(email, code=code, organization_id=organization_id)
    return bearer(await login(client, email))
