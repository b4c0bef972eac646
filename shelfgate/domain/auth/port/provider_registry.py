"""Provider registry port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from shelfgate.domain.auth.port.saml_strategy import SamlStrategy
from shelfgate.domain.shared.port import Port


class ProviderRegistry(Port, Protocol):
    """Registry of live SAML strategies keyed by IdP code.

    Populated once at startup and read-only afterwards.
    """

    @abstractmethod
    def get(self, code: str) -> SamlStrategy | None:
        """Get the strategy for an IdP code, None if not registered."""
        ...

    @abstractmethod
    def available_providers(self) -> list[str]:
        """Get list of registered IdP codes."""
        ...

    def is_available(self, code: str) -> bool:
        return code in self.available_providers()
