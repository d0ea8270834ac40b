import asyncio
import os
import tempfile

import pytest
import pytest_asyncio

_tmp_dir = tempfile.mkdtemp(prefix="tenantcore-tests-")

# Must be set before tenantcore is imported: settings and the engine are built at import
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_SALT_ROUNDS"] = "4"
os.environ["PREVIEW_DIR"] = os.path.join(_tmp_dir, "previews")
os.environ["PREVIEW_OPEN_BROWSER"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import delete  # noqa: E402

from tenantcore.base_microservice import AsyncSessionLocal, Base  # noqa: E402
from tenantcore.database.seed import init_models, seed  # noqa: E402
from tenantcore.main import app  # noqa: E402


async def _reset_database():
    async with AsyncSessionLocal() as db:
        for table in reversed(Base.metadata.sorted_tables):
            await db.execute(delete(table))
        await db.commit()
    await seed()


@pytest.fixture(scope="session", autouse=True)
def _database():
    asyncio.run(init_models())
    yield


@pytest.fixture(autouse=True)
def _clean_database(_database):
    asyncio.run(_reset_database())
    yield


@pytest.fixture
def preview_dir():
    return os.environ["PREVIEW_DIR"]


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(base_url="http://test", transport=transport) as ac:
        yield ac
