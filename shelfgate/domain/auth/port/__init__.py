"""Auth domain ports."""

from .provider_registry import ProviderRegistry
from .repository import BookLicenseRepository, IdpRepository, UserRepository
from .saml_strategy import AssertionInfo, SamlRequest, SamlStrategy

__all__ = [
    "AssertionInfo",
    "BookLicenseRepository",
    "IdpRepository",
    "ProviderRegistry",
    "SamlRequest",
    "SamlStrategy",
    "UserRepository",
]
