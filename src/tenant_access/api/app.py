"""FastAPI application with lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from tenant_access.api.middleware import RequestLoggingMiddleware
from tenant_access.api.routes.access import router as access_router
from tenant_access.api.routes.roles import router as roles_router
from tenant_access.auth.session import SupabaseSessionAuthenticator
from tenant_access.config import settings
from tenant_access.errors import ForbiddenError, UnauthorizedError, UnknownRoleError
from tenant_access.logging_config import configure_logging
from tenant_access.storage.database import async_session, engine

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Startup:
        - Configure logging.
        - Create the session token authenticator.
    Shutdown:
        - Dispose database engine (close connection pool).
    """
    configure_logging(
        environment=str(settings.environment),
        log_level=settings.log_level,
    )
    anon_key = settings.supabase_anon_key
    app.state.authenticator = SupabaseSessionAuthenticator.from_settings(
        settings.supabase_url,
        anon_key.get_secret_value() if anon_key is not None else None,
    )

    logger.info("app_started", environment=str(settings.environment))
    yield

    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title="Tenant Access",
    description="Tenant context resolution and role/permission authorization",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.is_dev,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)


HEALTH_CHECK_TIMEOUT = 5.0


@app.get("/health")
async def health() -> JSONResponse:
    """Deep health check: verifies DB connectivity."""
    checks: dict[str, str] = {}
    overall = "ok"

    try:
        async with async_session() as session:
            await asyncio.wait_for(
                session.execute(text("SELECT 1")),
                timeout=HEALTH_CHECK_TIMEOUT,
            )
        checks["db"] = "ok"
    except (TimeoutError, OperationalError, SQLAlchemyError) as e:
        logger.warning("health_check_db_error", error=type(e).__name__)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"
    except Exception as e:
        logger.error("health_check_db_unexpected", error=str(e), exc_info=True)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"

    status_code = 200 if overall == "ok" else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        },
    )


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(
    request: Request,
    exc: UnauthorizedError,
) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(ForbiddenError)
async def forbidden_handler(
    request: Request,
    exc: ForbiddenError,
) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(UnknownRoleError)
async def unknown_role_handler(
    request: Request,
    exc: UnknownRoleError,
) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"detail": f"Role not found: {exc.role_name}"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions."""
    logger.error("unhandled_exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(access_router, prefix="/api/v1")
app.include_router(roles_router, prefix="/api/v1")
