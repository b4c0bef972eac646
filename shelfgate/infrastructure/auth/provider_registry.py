"""Provider registry implementation."""

import logging
from collections.abc import Callable, Iterable

from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.auth.port.saml_strategy import SamlStrategy
from shelfgate.domain.shared.error import FederationConfigError
from shelfgate.infrastructure.auth.saml import OneLoginSamlStrategy

logger = logging.getLogger(__name__)

StrategyFactory = Callable[[Idp, str], SamlStrategy]


class InMemoryProviderRegistry(ProviderRegistry):
    """In-memory provider registry.

    Stores a mapping of IdP codes to their SAML strategies.
    Strategies are registered at application startup via DI.
    """

    def __init__(self, providers: dict[str, SamlStrategy] | None = None) -> None:
        """Initialize registry with optional initial strategies.

        Args:
            providers: Optional dict mapping IdP codes to strategies
        """
        self._providers: dict[str, SamlStrategy] = providers or {}

    def get(self, code: str) -> SamlStrategy | None:
        """Get the strategy for an IdP code."""
        return self._providers.get(code)

    def available_providers(self) -> list[str]:
        """Get list of registered IdP codes."""
        return list(self._providers.keys())

    def register(self, code: str, strategy: SamlStrategy) -> None:
        """Register a strategy.

        Args:
            code: The IdP code
            strategy: The SAML strategy bound to that IdP
        """
        self._providers[code] = strategy


def build_registry(
    idps: Iterable[Idp],
    app_url: str,
    strategy_factory: StrategyFactory = OneLoginSamlStrategy,
) -> InMemoryProviderRegistry:
    """Register one strategy per IdP.

    A malformed IdP is logged and skipped; it never prevents the others
    from registering.
    """
    registry = InMemoryProviderRegistry()
    for idp in idps:
        if registry.get(idp.code) is not None:
            logger.warning("Duplicate IdP code %s, keeping the first", idp.code)
            continue
        try:
            registry.register(idp.code, strategy_factory(idp, app_url))
        except FederationConfigError as e:
            logger.warning("Skipping IdP %s: %s", idp.code, e.message)
            continue
        logger.debug("Registered SAML strategy for IdP %s", idp.code)

    logger.info(
        "SAML registry built: %d IdP(s) [%s]",
        len(registry.available_providers()),
        ", ".join(registry.available_providers()),
    )
    return registry
