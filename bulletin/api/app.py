"""
FastAPI application for the Bulletin publishing API.

Every route declares its policy as a dependency; the app collects those
declarations into one PolicyRegistry while it is being built, then seals it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bulletin.api import posts, users
from bulletin.api.errors import UNKNOWN_ERROR_MESSAGE
from bulletin.auth import routes as auth
from bulletin.auth.enforcer import PolicyEnforcer
from bulletin.auth.policies import register_route_policies
from bulletin.auth.registry import PolicyRegistry
from bulletin.auth.roles import Role
from bulletin.config import Settings, get_settings
from bulletin.integrations.sentry import capture_exception, init_sentry
from bulletin.services.users import UserService
from bulletin.storage import StorageProvider, create_local_storage

logger = logging.getLogger(__name__)

# Every router whose routes declare policies
ROUTERS = (auth.router, posts.router, users.router)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    settings: Settings = app.state.settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    init_sentry(settings)

    if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        admin = await UserService(app.state.storage).ensure_user(
            settings.bootstrap_admin_email,
            settings.bootstrap_admin_password,
            Role.ADMINISTRATOR,
        )
        logger.info("Bootstrap administrator: %s", admin.email)

    logger.info(
        "Bulletin API starting in %s mode (%d policies)",
        settings.environment,
        len(app.state.policies),
    )

    yield

    logger.info("Bulletin API shutting down")


# =============================================================================
# App Setup
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to the environment settings
        storage: Defaults to a fresh in-memory storage
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Bulletin API",
        description="Content publishing API with role and ownership based authorization",
        version="0.1.0",
        lifespan=lifespan,
    )

    registry = PolicyRegistry()
    app.state.settings = settings
    app.state.storage = storage or create_local_storage()
    app.state.policies = registry
    app.state.enforcer = PolicyEnforcer(registry)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers, registering their policies first
    count = 0
    for router in ROUTERS:
        count += register_route_policies(router.routes, registry)
        app.include_router(router, prefix=settings.api_prefix)
    registry.seal()
    logger.debug("Registered %d route policies", count)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "bulletin-api"}

    @app.exception_handler(Exception)
    async def unknown_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        capture_exception(exc, path=request.url.path)
        return JSONResponse(status_code=500, content={"detail": UNKNOWN_ERROR_MESSAGE})

    return app


app = create_app()
