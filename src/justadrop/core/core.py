from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from justadrop.config import Config
from justadrop.core.secrets import SecretProvider, create_secret_provider

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from justadrop.core.modules.access.service import AccessService  # noqa: PLC0415
    from justadrop.core.modules.auth.service import AuthService  # noqa: PLC0415
    from justadrop.core.modules.email.service import EmailService  # noqa: PLC0415
    from justadrop.core.modules.moderator.service import ModeratorService  # noqa: PLC0415
    from justadrop.core.modules.moderator_auth.service import ModeratorAuthService  # noqa: PLC0415
    from justadrop.core.modules.organization.service import OrganizationService  # noqa: PLC0415
    from justadrop.core.modules.otp.service import OtpService  # noqa: PLC0415
    from justadrop.core.modules.session.service import SessionService  # noqa: PLC0415
    from justadrop.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    moderator: ModeratorService
    organization: OrganizationService
    email: EmailService
    otp: OtpService
    session: SessionService
    auth: AuthService
    moderator_auth: ModeratorAuthService
    access: AccessService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        # Stores first, then the orchestrating services that depend on them
        service_configs = [
            ("user", "justadrop.core.modules.user.service", "UserService"),
            ("moderator", "justadrop.core.modules.moderator.service", "ModeratorService"),
            ("organization", "justadrop.core.modules.organization.service", "OrganizationService"),
            ("email", "justadrop.core.modules.email.service", "EmailService"),
            ("otp", "justadrop.core.modules.otp.service", "OtpService"),
            ("session", "justadrop.core.modules.session.service", "SessionService"),
            ("auth", "justadrop.core.modules.auth.service", "AuthService"),
            ("moderator_auth", "justadrop.core.modules.moderator_auth.service", "ModeratorAuthService"),
            ("access", "justadrop.core.modules.access.service", "AccessService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse start order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, secrets, database, and all service instances.

    A database can be passed in directly (tests, embedding); otherwise a MongoDB
    client is created from `config.database_url` and closed on shutdown.
    """

    config: Config
    secrets: SecretProvider
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(
        self,
        config: Config,
        database: AsyncDatabase[dict[str, Any]] | None = None,
        secrets: SecretProvider | None = None,
    ) -> None:
        self.config = config
        self.secrets = secrets if secrets is not None else create_secret_provider(config)
        if database is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        else:
            self.mongo_client = None
        self.database = database
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        logger.info("core_started", secrets_backend=self.config.secrets_backend)

    async def on_stop(self) -> None:
        """Stop services and close the MongoDB connection if this core owns it."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()

    async def ping_database(self) -> None:
        """Round-trip to the database, raising if it is unreachable."""
        await self.database.command("ping")
