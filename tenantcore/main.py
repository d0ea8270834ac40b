from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from tenantcore import __version__
from tenantcore.auth.router import router as auth_router
from tenantcore.base_microservice import BaseMicroservice, ErrorResponse, engine
from tenantcore.database.seed import init_models, seed
from tenantcore.organizations.router import router as organization_router
from tenantcore.user_types.router import router as user_type_router
from tenantcore.users.router import router as user_router

# Create shared base microservice instance
base_service = BaseMicroservice()
settings = base_service.settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Creates tables and seeds reference data on startup.
    """
    base_service.log_event("service.startup", {"service": "main", "env": settings.env})
    await init_models()
    await seed()
    yield
    base_service.log_event("service.shutdown", {"service": "main"})
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant CRUD and authentication API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_domain],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return ErrorResponse(
        message,
        error=exc.detail,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Validation failed") if errors else "Validation failed"
    return ErrorResponse(message, error=errors, status_code=422)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    base_service.log_error(exc, context=f"{request.method} {request.url.path}")
    return ErrorResponse("Internal server error", status_code=500)


app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(organization_router, prefix=settings.api_prefix)
app.include_router(user_router, prefix=settings.api_prefix)
app.include_router(user_type_router, prefix=settings.api_prefix)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint returning API information."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "apiPrefix": settings.api_prefix,
        "services": ["auth", "organizations", "users", "user-types"],
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Overall system health check."""
    return {
        "status": "ok",
        "services": {
            "auth": "online",
            "organizations": "online",
            "users": "online",
            "user-types": "online",
        },
    }


# For running directly with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tenantcore.main:app", host="0.0.0.0", port=settings.port, reload=settings.is_dev)
