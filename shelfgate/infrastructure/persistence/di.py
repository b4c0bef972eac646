from typing import AsyncIterable

from dishka import from_context, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from shelfgate.config import Config
from shelfgate.domain.auth.port.repository import (
    BookLicenseRepository,
    IdpRepository,
    UserRepository,
)
from shelfgate.domain.shared.port.uow import UnitOfWork
from shelfgate.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from shelfgate.infrastructure.persistence.repository.auth import (
    SQLAlchemyBookLicenseRepository,
    SQLAlchemyIdpRepository,
    SQLAlchemyUserRepository,
)
from shelfgate.infrastructure.persistence.uow import SQLAlchemyUnitOfWork
from shelfgate.util.di.base import Provider
from shelfgate.util.di.scope import Scope


class PersistenceProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)

    # APP-scoped factories
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    # UOW-scoped session (one per unit of work)
    @provide(scope=Scope.UOW)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterable[AsyncSession]:
        async with session_factory() as session:
            yield session
            await session.commit()

    uow = provide(SQLAlchemyUnitOfWork, scope=Scope.UOW, provides=UnitOfWork)

    # UOW-scoped repositories
    user_repo = provide(SQLAlchemyUserRepository, scope=Scope.UOW, provides=UserRepository)
    idp_repo = provide(SQLAlchemyIdpRepository, scope=Scope.UOW, provides=IdpRepository)
    book_license_repo = provide(
        SQLAlchemyBookLicenseRepository,
        scope=Scope.UOW,
        provides=BookLicenseRepository,
    )
