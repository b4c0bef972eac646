"""ASGI session middleware backed by a SessionStore.

The cookie carries only a PyJWT-signed session id; data stays in the store.
Empty sessions are never persisted.
"""

import json
import logging
import secrets
from typing import Any

import jwt
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shelfgate.infrastructure.session.store import DEFAULT_TTL, SessionStore

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"


class Session(dict):
    """Session data for one request.

    Behaves like a dict; `max_age` may be changed per request to extend the
    cookie lifetime, `regenerate()` issues a fresh id on the next save and
    `destroy()` removes the session entirely.
    """

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        session_id: str | None = None,
        max_age: int | None = None,
    ) -> None:
        super().__init__(data or {})
        self.session_id = session_id
        self._snapshot = json.dumps(data or {}, sort_keys=True, default=str)
        self._max_age = max_age
        self.max_age_changed = False
        self.regenerated = False
        self.destroyed = False

    @property
    def max_age(self) -> int | None:
        return self._max_age

    @max_age.setter
    def max_age(self, value: int | None) -> None:
        if value != self._max_age:
            self._max_age = value
            self.max_age_changed = True

    @property
    def modified(self) -> bool:
        return json.dumps(dict(self), sort_keys=True, default=str) != self._snapshot

    def regenerate(self) -> None:
        self.regenerated = True

    def destroy(self) -> None:
        self.clear()
        self.destroyed = True


class SessionMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        secret: str,
        cookie_name: str = "shelfgate.sid",
        max_age: int | None = None,
        same_site: str = "lax",
        https_only: bool = False,
    ) -> None:
        self.app = app
        self.store = store
        self.secret = secret
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.security_flags = "httponly; samesite=" + same_site
        if https_only:
            self.security_flags += "; secure"

    def _pack(self, session_id: str) -> str:
        return jwt.encode({"sid": session_id}, self.secret, algorithm=_ALGORITHM)

    def _unpack(self, cookie: str | None) -> str | None:
        if not cookie:
            return None
        try:
            return jwt.decode(cookie, self.secret, algorithms=[_ALGORITHM]).get("sid")
        except jwt.InvalidTokenError:
            logger.debug("Ignoring session cookie with bad signature")
            return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        session_id = self._unpack(connection.cookies.get(self.cookie_name))
        stored = await self.store.get(session_id) if session_id else None
        if stored is None:
            session = Session(max_age=self.max_age)
        else:
            # Lifetime travels with the data so an extended cookie survives later saves
            session = Session(
                stored.get("data"),
                session_id=session_id,
                max_age=stored.get("max_age", self.max_age),
            )
        scope["session"] = session
        had_cookie = self.cookie_name in connection.cookies

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                if session.destroyed or (not session and session.session_id):
                    if session.session_id:
                        await self.store.delete(session.session_id)
                    if had_cookie:
                        headers.append("Set-Cookie", self._expired_cookie())
                elif session and (
                    session.modified
                    or session.max_age_changed
                    or session.regenerated
                    or session.session_id is None
                ):
                    session_id = await self._save(session)
                    headers.append("Set-Cookie", self._cookie(session_id, session.max_age))
            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def _save(self, session: Session) -> str:
        """Persist the session, returning the id the cookie must carry."""
        session_id = session.session_id
        if session.regenerated and session_id:
            await self.store.delete(session_id)
            session_id = None
        if session_id is None:
            session_id = secrets.token_urlsafe(32)
        await self.store.set(
            session_id,
            {"data": dict(session), "max_age": session.max_age},
            ttl=session.max_age or DEFAULT_TTL,
        )
        session.session_id = session_id
        return session_id

    def _cookie(self, session_id: str, max_age: int | None) -> str:
        header = f"{self.cookie_name}={self._pack(session_id)}; path=/"
        if max_age:
            header += f"; Max-Age={max_age}"
        return f"{header}; {self.security_flags}"

    def _expired_cookie(self) -> str:
        return (
            f"{self.cookie_name}=null; path=/; "
            f"expires=Thu, 01 Jan 1970 00:00:00 GMT; {self.security_flags}"
        )
