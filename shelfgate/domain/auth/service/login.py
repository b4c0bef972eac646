"""Login provisioning: turns a validated SAML assertion into a session profile."""

import logging
from typing import Any

from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.model.user import User
from shelfgate.domain.auth.port.repository import UserRepository
from shelfgate.domain.auth.port.saml_strategy import AssertionInfo
from shelfgate.domain.auth.service.access import AccessFilter, is_effective_admin
from shelfgate.domain.shared.error import BadAssertionError
from shelfgate.domain.shared.service import Service

logger = logging.getLogger(__name__)

# Attribute names as released by the federation
EMAIL_ATTRIBUTE = "urn:oid:0.9.2342.19200300.100.1.3"
GIVEN_NAME_ATTRIBUTE = "urn:oid:2.5.4.42"
SURNAME_ATTRIBUTE = "urn:oid:2.5.4.4"
SUBJECT_ATTRIBUTE = "idpUserId"
ADMIN_ATTRIBUTE = "isAdmin"
BOOK_IDS_ATTRIBUTE = "bookIds"

_FALSE_VALUES = frozenset({"", "0", "false", "no"})


def _is_true(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


def _single(value: Any) -> str:
    """First value of a possibly multi-valued attribute, "" when absent."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return "" if value is None else str(value)


def parse_book_ids(value: Any) -> list[int]:
    """Parse a space-delimited list of book ids, skipping non-integers."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        value = " ".join(str(v) for v in value)
    book_ids = []
    for token in str(value).split():
        try:
            book_ids.append(int(token))
        except ValueError:
            logger.warning("Ignoring non-integer book id in assertion: %r", token)
    return book_ids


class LoginProvisioner(Service):
    """Provisions the local user and assembles the session profile.

    Steps run strictly in order: validate, filter access, upsert user,
    assemble profile. Any failure aborts the login before a profile exists.
    """

    _user_repo: UserRepository
    _access_filter: AccessFilter
    _admin_emails: frozenset[str]

    async def provision(self, idp: Idp, assertion: AssertionInfo) -> SessionProfile:
        """Complete a login for a validated assertion from `idp`.

        Raises:
            BadAssertionError: If email or subject id is missing
            StorageUnavailableError: If a store lookup or write fails
        """
        logger.info("Profile from idp %s: %s", idp.code, assertion.attributes)

        mail = _single(assertion.get(EMAIL_ATTRIBUTE))
        idp_user_id = _single(assertion.get(SUBJECT_ATTRIBUTE))
        if not mail or not idp_user_id:
            logger.warning("Bad login from idp %s: %s", idp.code, assertion.attributes)
            raise BadAssertionError()

        is_admin_claim = (
            _is_true(assertion.get(ADMIN_ATTRIBUTE)) or mail.lower() in self._admin_emails
        )
        book_ids = parse_book_ids(assertion.get(BOOK_IDS_ATTRIBUTE))

        accessible = await self._access_filter.compute_accessible_books(
            book_ids, [idp.code], is_admin_claim
        )

        user = await self._upsert_user(idp_user_id, idp.code, mail)

        derived = {
            "id": user.id,
            "email": mail,
            "firstname": _single(assertion.get(GIVEN_NAME_ATTRIBUTE)),
            "lastname": _single(assertion.get(SURNAME_ATTRIBUTE)),
            "bookIds": sorted(accessible),
            "isAdmin": is_effective_admin(is_admin_claim, [idp.code]),
            "idpCode": idp.code,
            "idpName": idp.name,
            "idpLogoSrc": idp.logo_src,
            "idpSmallLogoSrc": idp.small_logo_src or idp.logo_src,
            "idpLang": idp.language or "en",
        }
        # Derived fields win over same-named assertion attributes
        profile = SessionProfile.model_validate({**assertion.attributes, **derived})

        logger.info("Login successful: user_id=%s, idp=%s", user.id, idp.code)
        return profile

    async def _upsert_user(self, idp_user_id: str, idp_code: str, mail: str) -> User:
        user = await self._user_repo.get_by_idp_identity(idp_user_id, idp_code)
        if user is None:
            logger.debug("Creating new user row: idp=%s", idp_code)
            user = User.create(user_id_from_idp=idp_user_id, idp_code=idp_code, email=mail)
        else:
            logger.debug("Updating user row: user_id=%s", user.id)
            user.record_login(mail)
        return await self._user_repo.save(user)
