"""Custom Dishka scopes for shelfgate."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """shelfgate dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (engine, provider registry, config)
    - UOW: Unit of Work (one per HTTP request)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
