from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.controllers import query, rest
from api.dependencies import enforce_rate_limit
from api.middleware import add_error_guard, add_security_headers
from config import Settings, get_settings
from database import engine
from errors import ApiError
from log_config import configure_logging
from repositories.secrets import SecretStore, build_secret_store
from services.auth import AuthGate
from services.rate_limit import FixedWindowRateLimiter

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.startup", rate_limit=app.state.rate_limiter.limit)
    yield
    # Shutdown
    await engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    secret_store: Optional[SecretStore] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        dependencies=[Depends(enforce_rate_limit)],
    )

    # Process-wide state, created once per application.
    app.state.rate_limiter = rate_limiter or FixedWindowRateLimiter(
        limit=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        sweep_interval=settings.rate_limit_sweep_seconds,
    )
    app.state.auth_gate = AuthGate(secret_store or build_secret_store(settings))

    # Middleware added later wraps the earlier ones.
    add_error_guard(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )
    add_security_headers(app)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(rest.router)
    app.include_router(query.router)

    @app.get("/")
    async def root():
        return {"message": f"{settings.app_name} is running"}

    return app


app = create_app()
