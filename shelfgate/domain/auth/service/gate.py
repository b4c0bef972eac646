"""Request gate: decides what happens to every inbound request."""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.service.access import AccessFilter
from shelfgate.domain.shared.service import Service

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
LOGIN_REDIRECT_KEY = "loginRedirect"

# Library root (optionally with a query) or a single book
LIBRARY_URL_PATTERN = re.compile(r"^/(book/[^/]*|\?.*)?$")
USER_SETUP_URL_PATTERN = re.compile(r"^/usersetup\.json")

BYPASS_IDP_CODE = "bm"
_BYPASS_PROFILE: dict[str, Any] = {
    "id": 1,
    "email": "place@holder.com",
    "firstname": "Jim",
    "lastname": "Smith",
    "isAdmin": True,
    "idpCode": BYPASS_IDP_CODE,
    "idpName": "BibleMesh",
    "idpLogoSrc": "https://s3-us-west-2.amazonaws.com/biblemesh-static/biblemesh-logo.png",
    "idpSmallLogoSrc": "https://s3-us-west-2.amazonaws.com/biblemesh-static/biblemesh-logo-small.png",
    "idpLang": "en",
}

WIDGET_DENIED_MESSAGE = "Unable to display book. You are not logged in."


@dataclass(frozen=True)
class GateRequest:
    """What the gate needs to know about a request."""

    method: str
    path: str
    query_string: str = ""
    is_app_request: bool = False  # Mobile/embedded app client (app-request header)
    is_widget: bool = False  # Rendered inside an embedding page's iframe

    @property
    def original_url(self) -> str:
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path


class GateDecision:
    """Base for gate outcomes."""


@dataclass(frozen=True)
class Allow(GateDecision):
    """Serve the request with this profile."""

    profile: SessionProfile
    synthetic: bool = False  # Bypass identity, never written to the session


@dataclass(frozen=True)
class DenyWidget(GateDecision):
    """Tell the embedding page, via postMessage, that the reader is logged out."""

    message: str = WIDGET_DENIED_MESSAGE

    def render(self) -> str:
        payload = json.dumps(self.message)
        return (
            "\n<script>\n"
            "  parent.postMessage({\n"
            "      action: 'forbidden',\n"
            "      iframeid: window.name,\n"
            f"      payload: {payload},\n"
            "  }, '*');\n"
            "</script>\n"
        )


@dataclass(frozen=True)
class RedirectToLogin(GateDecision):
    """Remember where the caller was going and send them to log in."""

    return_url: str
    session_max_age: int | None = None  # Extend the session cookie when set
    location: str = LOGIN_PATH


@dataclass(frozen=True)
class Reject(GateDecision):
    """Refuse a non-interactive caller."""

    status_code: int = 403
    error: str = "Please login"


class RequestGate(Service):
    """Classifies requests in priority order.

    1. Authenticated session: allow.
    2. Bypass mode: allow with a synthetic superuser.
    3. GET of the library, a book, or the app's user setup document:
       widget denial or redirect to login.
    4. Anything else: 403.
    """

    _access_filter: AccessFilter
    _skip_auth: bool = False
    _app_session_max_age: int | None = None

    async def evaluate(
        self, request: GateRequest, session: Mapping[str, Any] | None
    ) -> GateDecision:
        profile = SessionProfile.from_session(session)
        if profile is not None:
            return Allow(profile=profile)

        if self._skip_auth:
            return Allow(profile=await self.bypass_profile(), synthetic=True)

        if self._is_interactive(request):
            if request.is_widget:
                logger.debug("Widget request without session: %s", request.original_url)
                return DenyWidget()

            logger.info("Redirecting to authenticate: %s", request.original_url)
            max_age = self._app_session_max_age if request.is_app_request else None
            if max_age is not None:
                logger.debug("Max age to set on cookie: %s", max_age)
            return RedirectToLogin(return_url=request.original_url, session_max_age=max_age)

        logger.debug("Rejecting unauthenticated request: %s %s", request.method, request.path)
        return Reject()

    async def bypass_profile(self) -> SessionProfile:
        """Fixed superuser used when authentication is skipped."""
        book_ids = await self._access_filter.compute_accessible_books(
            [], [BYPASS_IDP_CODE], True
        )
        return SessionProfile.model_validate({**_BYPASS_PROFILE, "bookIds": sorted(book_ids)})

    @staticmethod
    def _is_interactive(request: GateRequest) -> bool:
        if request.method != "GET":
            return False
        if request.is_app_request and USER_SETUP_URL_PATTERN.match(request.original_url):
            return True
        return bool(LIBRARY_URL_PATTERN.match(request.original_url))
