"""SQLAlchemy unit of work."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfgate.domain.shared.error import StorageUnavailableError
from shelfgate.domain.shared.port.uow import UnitOfWork

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(UnitOfWork):
    """Commits the request-scoped session shared by the repositories."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed: %s", e)
            await self.session.rollback()
            raise StorageUnavailableError("Commit failed", code="store_failure") from e
