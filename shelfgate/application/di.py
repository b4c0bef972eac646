from dishka import AsyncContainer, Provider, make_async_container

from shelfgate.config import Config
from shelfgate.domain.auth.util.di import AuthProvider
from shelfgate.infrastructure.auth import AuthInfraProvider
from shelfgate.infrastructure.persistence import PersistenceProvider
from shelfgate.util.di.scope import Scope


def create_container(config: Config | None = None, *overrides: Provider) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    if config is None:
        config = Config()  # type: ignore[call-arg]

    return make_async_container(
        PersistenceProvider(),
        AuthProvider(),
        AuthInfraProvider(),
        *overrides,
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
