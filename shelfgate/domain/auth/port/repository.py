"""Repository ports for the auth domain."""

from abc import abstractmethod
from collections.abc import Iterable
from typing import Protocol

from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.model.user import User
from shelfgate.domain.shared.port import Port


class UserRepository(Port, Protocol):
    """Repository for User aggregate persistence."""

    @abstractmethod
    async def get_by_idp_identity(self, user_id_from_idp: str, idp_code: str) -> User | None:
        """Get a user by external subject id and IdP code."""
        ...

    @abstractmethod
    async def save(self, user: User) -> User:
        """Insert or update a user, returning it with its store-assigned id."""
        ...


class IdpRepository(Port, Protocol):
    """Read access to configured identity providers."""

    @abstractmethod
    async def list_all(self) -> list[Idp]:
        """Get every configured identity provider."""
        ...


class BookLicenseRepository(Port, Protocol):
    """Read access to book-to-IdP license associations."""

    @abstractmethod
    async def licensed_book_ids(
        self,
        idp_codes: Iterable[str],
        book_ids: Iterable[int] | None = None,
    ) -> set[int]:
        """Get ids of books licensed to any of `idp_codes`.

        Args:
            idp_codes: IdP codes whose licenses to read
            book_ids: When given, restrict the lookup to these books

        Raises:
            StorageUnavailableError: If the lookup fails
        """
        ...
