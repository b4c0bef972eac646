"""ASGI middleware for transport security and the request gate."""

import logging

from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from shelfgate.application.api.v1.errors import map_shelfgate_error
from shelfgate.domain.auth.service.gate import (
    LOGIN_REDIRECT_KEY,
    Allow,
    DenyWidget,
    GateDecision,
    GateRequest,
    RedirectToLogin,
    Reject,
    RequestGate,
)
from shelfgate.domain.auth.util.di.provider import PROFILE_STATE_KEY
from shelfgate.domain.shared.error import ShelfgateError

logger = logging.getLogger(__name__)

APP_REQUEST_HEADER = "app-request"
WIDGET_QUERY_PARAM = "widget"

# Reachable without a session
PUBLIC_PATH_PREFIXES = ("/login", "/logout")
PUBLIC_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PATH_PREFIXES)


class RequireHttpsMiddleware:
    """Redirect plain-HTTP requests to the same URL over HTTPS.

    TLS terminates upstream, so the proxy's X-Forwarded-Proto header counts
    as well as the connection scheme.
    """

    def __init__(self, app: ASGIApp, exempt_paths: frozenset[str] = frozenset({"/health"})) -> None:
        self.app = app
        self.exempt_paths = exempt_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in self.exempt_paths:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        forwarded = request.headers.get("x-forwarded-proto", "")
        if request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https":
            await self.app(scope, receive, send)
            return

        url = URL(scope=scope).replace(scheme="https", port=None)
        logger.debug("Redirecting to HTTPS: %s", url)
        response = RedirectResponse(str(url), status_code=302)
        await response(scope, receive, send)


class GateMiddleware:
    """Runs the RequestGate before routing.

    Must sit inside both the session middleware and the DI container
    middleware: it reads `scope["session"]` and resolves the gate from the
    per-request container.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or is_public_path(scope["path"]):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        try:
            gate = await request.state.dishka_container.get(RequestGate)
            decision = await gate.evaluate(self._gate_request(request), request.session)
        except ShelfgateError as e:
            logger.error("Request gate failed on %s: %s", request.url.path, e.message)
            http_exc = map_shelfgate_error(e)
            response = JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)
            await response(scope, receive, send)
            return

        if isinstance(decision, Allow):
            setattr(request.state, PROFILE_STATE_KEY, decision.profile)
            await self.app(scope, receive, send)
            return

        response = self._respond(decision, request)
        await response(scope, receive, send)

    @staticmethod
    def _gate_request(request: Request) -> GateRequest:
        return GateRequest(
            method=request.method,
            path=request.url.path,
            query_string=request.url.query,
            # Flags count only when non-empty
            is_app_request=bool(request.headers.get(APP_REQUEST_HEADER)),
            is_widget=bool(request.query_params.get(WIDGET_QUERY_PARAM)),
        )

    @staticmethod
    def _respond(decision: GateDecision, request: Request) -> Response:
        if isinstance(decision, DenyWidget):
            return HTMLResponse(decision.render())

        if isinstance(decision, RedirectToLogin):
            session = request.session
            session[LOGIN_REDIRECT_KEY] = decision.return_url
            if decision.session_max_age is not None:
                session.max_age = decision.session_max_age
            return RedirectResponse(decision.location, status_code=302)

        if isinstance(decision, Reject):
            return JSONResponse({"error": decision.error}, status_code=decision.status_code)

        raise TypeError(f"Unhandled gate decision: {decision!r}")
