"""
Schema creation and reference data.

Both steps are idempotent and run on every startup.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from tenantcore.base_microservice import AsyncSessionLocal, Base, engine, logger
from tenantcore.database import models  # noqa: F401  registers the tables on Base.metadata
from tenantcore.database.models import Organization, UserType

DEFAULT_ORGANIZATION_UUID = "00000000-0000-0000-0000-000000000001"

USER_TYPES = [
    {"code": "SUPER_ADMIN", "name": "Super Administrator", "description": "Full access to every organization"},
    {"code": "ADMIN", "name": "Administrator", "description": "Manages users of their own organization"},
    {"code": "USER", "name": "Standard User", "description": "Default user type"},
]


async def init_models(bind: AsyncEngine = engine):
    """Create any missing tables."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_reference_data(db: AsyncSession):
    existing = set((await db.execute(select(UserType.code))).scalars().all())
    for values in USER_TYPES:
        if values["code"] not in existing:
            db.add(UserType(**values, is_active=True))
            logger.info(f"Seeded user type: {values['code']}")

    result = await db.execute(select(Organization).where(Organization.uuid == DEFAULT_ORGANIZATION_UUID))
    if result.scalar_one_or_none() is None:
        db.add(Organization(
            uuid=DEFAULT_ORGANIZATION_UUID,
            name="Default Organization",
            description="Organization created on first startup",
        ))
        logger.info("Seeded default organization")

    await db.commit()


async def seed():
    async with AsyncSessionLocal() as db:
        await seed_reference_data(db)
