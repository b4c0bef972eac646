"""SAML strategy port for the auth domain."""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol

from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.shared.port import Port


@dataclass(frozen=True)
class SamlRequest:
    """The parts of an inbound HTTP request a SAML exchange needs."""

    path: str
    get_data: dict[str, str] = field(default_factory=dict)
    post_data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AssertionInfo:
    """A validated SAML assertion, flattened into a profile-style mapping.

    Single-valued attributes are unwrapped to plain strings; the federation
    identifiers needed for single logout are added as `nameID`,
    `nameIDFormat` and `sessionIndex`.
    """

    attributes: dict[str, Any]

    def get(self, name: str) -> Any:
        return self.attributes.get(name)


class SamlStrategy(Port, Protocol):
    """One SAML service-provider configuration bound to a single IdP.

    Implementations are adapters in infrastructure/ (e.g. OneLoginSamlStrategy).
    """

    @property
    @abstractmethod
    def idp(self) -> Idp:
        """The identity provider this strategy talks to."""
        ...

    @abstractmethod
    def get_login_url(self, relay_state: str | None = None) -> str:
        """Build the IdP redirect URL carrying a fresh AuthnRequest."""
        ...

    @abstractmethod
    def process_response(self, request: SamlRequest) -> AssertionInfo:
        """Validate a POSTed SAML response.

        Raises:
            AuthenticationError: If the response is invalid or unauthenticated
        """
        ...

    @abstractmethod
    def get_metadata(self) -> str:
        """Service-provider metadata, signed with our certificate."""
        ...

    @abstractmethod
    def get_logout_url(self, profile: SessionProfile) -> str | None:
        """Build an IdP LogoutRequest redirect, None when SLO is unavailable."""
        ...
