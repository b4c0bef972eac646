"""Unit of work port."""

from abc import abstractmethod
from typing import Protocol

from shelfgate.domain.shared.port import Port


class UnitOfWork(Port, Protocol):
    """Transaction boundary shared by the repositories of one request."""

    @abstractmethod
    async def commit(self) -> None:
        """Make every pending write durable.

        Raises:
            StorageUnavailableError: If the commit fails
        """
        ...
