"""Access filter: reconciles claimed book entitlements with IdP licenses."""

import logging
from collections.abc import Iterable

from shelfgate.domain.auth.port.repository import BookLicenseRepository
from shelfgate.domain.shared.service import Service

logger = logging.getLogger(__name__)


def is_effective_admin(is_admin_claim: bool, idp_codes: Iterable[str]) -> bool:
    """Admins only count as admins while logged into exactly one IdP."""
    return bool(is_admin_claim) and len(list(idp_codes)) == 1


class AccessFilter(Service):
    """Computes the authoritative set of books a user may open.

    A book is accessible only if it is licensed to the IdP(s) the user
    authenticated through. Non-admins additionally need the book in their
    claimed set; admins get every licensed book.
    """

    _book_license_repo: BookLicenseRepository

    async def compute_accessible_books(
        self,
        claimed_book_ids: Iterable[int],
        idp_codes: Iterable[str],
        is_admin_claim: bool,
    ) -> frozenset[int]:
        """Filter claimed book ids by the licenses of `idp_codes`.

        Args:
            claimed_book_ids: Book ids asserted by the IdP
            idp_codes: Codes of the IdPs the user is logged into
            is_admin_claim: Whether the assertion claims admin rights

        Returns:
            Accessible book ids

        Raises:
            StorageUnavailableError: If the license lookup fails. No fallback
                entitlement set is ever returned.
        """
        codes = list(idp_codes)
        claimed = list(claimed_book_ids)
        is_admin = is_effective_admin(is_admin_claim, codes)

        licensed = await self._book_license_repo.licensed_book_ids(
            codes, None if is_admin else claimed
        )
        logger.debug("Filter book ids by idp: codes=%s, licensed=%s", codes, sorted(licensed))

        if is_admin:
            return frozenset(licensed)
        return frozenset(book_id for book_id in claimed if book_id in licensed)
