"""SQLAlchemy repository implementations for the auth domain."""

import logging
from collections.abc import Iterable

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.model.user import User
from shelfgate.domain.auth.port.repository import (
    BookLicenseRepository,
    IdpRepository,
    UserRepository,
)
from shelfgate.domain.shared.error import StorageUnavailableError
from shelfgate.infrastructure.persistence.tables import (
    book_idp_table,
    idp_table,
    users_table,
)

logger = logging.getLogger(__name__)

# Padding for IN (...) lists so an empty input never matches every row
NO_IDP_SENTINEL = ""
NO_BOOK_SENTINEL = -1


def _row_to_user(row: dict) -> User:
    """Convert a database row to a User model."""
    return User(
        id=row["id"],
        user_id_from_idp=row["user_id_from_idp"],
        idp_code=row["idp_code"],
        email=row["email"],
        last_login_at=row["last_login_at"],
    )


def _user_to_dict(user: User) -> dict:
    """Convert a User model to a database row dict (without the id)."""
    return {
        "user_id_from_idp": user.user_id_from_idp,
        "idp_code": user.idp_code,
        "email": user.email,
        "last_login_at": user.last_login_at,
    }


def _row_to_idp(row: dict) -> Idp:
    """Convert a database row to an Idp model."""
    return Idp(
        code=row["code"],
        name=row["name"],
        entity_id=row["entity_id"],
        entry_point=row["entry_point"],
        logout_url=row["logout_url"],
        idp_cert=row["idp_cert"],
        sp_key=row["sp_key"],
        sp_cert=row["sp_cert"],
        language=row["language"],
        logo_src=row["logo_src"],
        small_logo_src=row["small_logo_src"],
    )


class SQLAlchemyUserRepository(UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_idp_identity(self, user_id_from_idp: str, idp_code: str) -> User | None:
        stmt = select(users_table).where(
            users_table.c.user_id_from_idp == user_id_from_idp,
            users_table.c.idp_code == idp_code,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("User lookup failed: idp=%s, error=%s", idp_code, e)
            raise StorageUnavailableError("User lookup failed", code="store_failure") from e
        row = result.mappings().first()
        return _row_to_user(dict(row)) if row else None

    async def save(self, user: User) -> User:
        """Insert a new user or update email/last login of an existing one.

        Updates are keyed by (user_id_from_idp, idp_code); concurrent logins
        for the same subject resolve last-write-wins.
        """
        user_dict = _user_to_dict(user)
        try:
            if user.id is None:
                result = await self.session.execute(insert(users_table).values(**user_dict))
                user = user.model_copy(update={"id": result.inserted_primary_key[0]})
            else:
                stmt = (
                    update(users_table)
                    .where(
                        users_table.c.user_id_from_idp == user.user_id_from_idp,
                        users_table.c.idp_code == user.idp_code,
                    )
                    .values(email=user.email, last_login_at=user.last_login_at)
                )
                await self.session.execute(stmt)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("User upsert failed: idp=%s, error=%s", user.idp_code, e)
            raise StorageUnavailableError("User upsert failed", code="store_failure") from e
        return user


class SQLAlchemyIdpRepository(IdpRepository):
    """SQLAlchemy implementation of IdpRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[Idp]:
        """Get every IdP row; rows that fail validation are skipped."""
        try:
            result = await self.session.execute(select(idp_table).order_by(idp_table.c.code))
        except SQLAlchemyError as e:
            raise StorageUnavailableError("IdP lookup failed", code="store_failure") from e

        idps = []
        for row in result.mappings().all():
            try:
                idps.append(_row_to_idp(dict(row)))
            except ValueError as e:
                logger.warning("Skipping malformed idp row %s: %s", row["code"], e)
        return idps


class SQLAlchemyBookLicenseRepository(BookLicenseRepository):
    """SQLAlchemy implementation of BookLicenseRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def licensed_book_ids(
        self,
        idp_codes: Iterable[str],
        book_ids: Iterable[int] | None = None,
    ) -> set[int]:
        codes = [*idp_codes, NO_IDP_SENTINEL]
        stmt = select(book_idp_table.c.book_id).where(book_idp_table.c.idp_code.in_(codes))
        if book_ids is not None:
            stmt = stmt.where(book_idp_table.c.book_id.in_([*book_ids, NO_BOOK_SENTINEL]))

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Book license lookup failed: idps=%s, error=%s", codes[:-1], e)
            raise StorageUnavailableError(
                "Book license lookup failed", code="store_failure"
            ) from e
        return {int(book_id) for book_id in result.scalars().all()}
