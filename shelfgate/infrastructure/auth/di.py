"""DI provider for auth infrastructure."""

import logging

from dishka import provide
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shelfgate.config import Config
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.shared.error import StorageUnavailableError
from shelfgate.infrastructure.auth.provider_registry import (
    InMemoryProviderRegistry,
    build_registry,
)
from shelfgate.infrastructure.persistence.repository.auth import SQLAlchemyIdpRepository
from shelfgate.util.di.base import Provider
from shelfgate.util.di.scope import Scope

logger = logging.getLogger(__name__)


class AuthInfraProvider(Provider):
    """DI provider for auth infrastructure adapters."""

    @provide(scope=Scope.APP)
    async def get_provider_registry(
        self,
        config: Config,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> ProviderRegistry:
        """Provide ProviderRegistry with one strategy per stored IdP.

        Built once per application. If the IdP table cannot be read the
        service starts with no providers.
        """
        try:
            async with session_factory() as session:
                idps = await SQLAlchemyIdpRepository(session).list_all()
        except StorageUnavailableError as e:
            logger.error("Could not load identity providers: %s", e.__cause__ or e)
            return InMemoryProviderRegistry()

        return build_registry(idps, config.server.app_url)
