from shelfgate.infrastructure.session.middleware import Session, SessionMiddleware
from shelfgate.infrastructure.session.store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
    create_session_store,
)

__all__ = [
    "InMemorySessionStore",
    "RedisSessionStore",
    "Session",
    "SessionMiddleware",
    "SessionStore",
    "create_session_store",
]
