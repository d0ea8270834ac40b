import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from tenantcore.config import get_settings

settings = get_settings()

# Setup logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("tenantcore")


def _engine_kwargs(url: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": settings.database_echo}
    if url.startswith("sqlite"):
        # aiosqlite connections must not be shared between event loops
        kwargs["poolclass"] = NullPool
    return kwargs


# SQLAlchemy async setup
engine = create_async_engine(settings.database_url, **_engine_kwargs(settings.database_url))
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def get_db_session():
    """Dependency for getting a database session."""
    async with AsyncSessionLocal() as session:
        yield session


class ApiResponse(JSONResponse):
    """
    Standard success envelope for all API endpoints.
    """
    def __init__(self, data: Any = None, message: str = "success", **kwargs):
        content = {
            "success": True,
            "message": message,
            "data": jsonable_encoder(data),
        }
        super().__init__(content=content, **kwargs)


class ErrorResponse(JSONResponse):
    """
    Standard error envelope, rendered by the global exception handlers.
    """
    def __init__(self, message: str, error: Any = None, status_code: int = 500, **kwargs):
        content = {
            "success": False,
            "message": message,
            "error": jsonable_encoder(error),
            "errorCode": status_code,
        }
        super().__init__(content=content, status_code=status_code, **kwargs)


class BaseMicroservice:
    """
    Base class for all services. Provides:
    - Event/error logging
    - Response envelopes
    - Access to settings
    """
    def __init__(self, name: str = "core"):
        self.name = name
        self.logger = logger
        self.settings = settings

    def success_response(self, message: str = "success", data: Any = None, status_code: int = 200):
        """
        Return a standard success response.
        """
        return ApiResponse(data=data, message=message, status_code=status_code)

    def log_event(self, event: str, details: Optional[Dict[str, Any]] = None):
        self.logger.info(f"EVENT: {event} | Service: {self.name} | Details: {details}")

    def log_error(self, error: Exception, context: str = ""):
        self.logger.error(f"ERROR: {str(error)} | Service: {self.name} | Context: {context}")
