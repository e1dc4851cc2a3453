from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from justadrop.app import App
from justadrop.config import Config
from justadrop.errors import UserError
from justadrop.web.error_handlers import general_exception_handler, request_validation_handler, user_error_handler
from justadrop.web.openapi import set_custom_openapi
from justadrop.web.routers import (
    auth_router,
    health_router,
    moderator_auth_router,
    moderators_router,
    organizations_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="Just a Drop API", lifespan=lifespan)
    # Set eagerly: dependencies read these even when the lifespan has not run
    app.state.app = app_instance
    app.state.config = config

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Auth-Id"],
        )

    # Health checks (root level, not versioned)
    app.include_router(health_router)

    # API v1 routes
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(moderator_auth_router, prefix="/api/v1")
    app.include_router(moderators_router, prefix="/api/v1")
    app.include_router(organizations_router, prefix="/api/v1")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
