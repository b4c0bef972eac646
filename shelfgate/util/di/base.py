"""Base class for shelfgate DI providers."""

from dishka import Provider as DishkaProvider

from shelfgate.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for all shelfgate providers; unscoped factories live for the app."""

    scope = Scope.APP
