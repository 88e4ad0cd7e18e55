from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from cowork_api.core.settings import settings
from cowork_api.db.session import engine
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing
from .services.perks import PerkPersistenceError, PerkRuleViolation, PerkServiceError


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Cowork API starting",
        environment=settings.environment,
        perks_timezone=settings.perks_timezone,
    )
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Cowork API stopped")


async def _perk_error_handler(request: Request, exc: PerkServiceError) -> JSONResponse:
    body: dict[str, object] = {"success": False, "error": exc.message}
    if isinstance(exc, PerkRuleViolation) and exc.next_available_at is not None:
        body["nextAvailableAt"] = exc.next_available_at.isoformat()
    if isinstance(exc, PerkPersistenceError) and settings.expose_error_details and exc.detail:
        body["details"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=body)


async def _http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error", path=request.url.path)
    body: dict[str, object] = {"success": False, "error": "Internal server error"}
    if settings.expose_error_details:
        body["details"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": f"{location}: {message}" if location else message},
    )


def create_app() -> FastAPI:
    """Application factory for the Cowork FastAPI service."""
    configure_logging(
        service_name="cowork-api",
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
    )

    app = FastAPI(
        title="Cowork API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name="cowork-api",
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.add_exception_handler(PerkServiceError, _perk_error_handler)
    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
