"""Error hierarchy for shelfgate.

Error layers:
- ShelfgateError: Base class for all shelfgate errors
- DomainError: Business rule violations, rejected assertions (4xx responses)
- InfrastructureError: Store, session and federation failures (503 responses)

These errors are mapped to HTTP responses by the exception handlers in app.py.
"""


class ShelfgateError(Exception):
    """Base class for all shelfgate errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(ShelfgateError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class AuthenticationError(DomainError):
    """Login could not be completed."""


class BadAssertionError(AuthenticationError):
    """SAML assertion is missing mandatory identity attributes."""

    def __init__(self, message: str = "Bad login.") -> None:
        super().__init__(message, code="bad_login")


class AuthorizationError(DomainError):
    """Caller is not authorized for this resource."""


# =============================================================================
# Infrastructure Errors (system-level failures - typically 503)
# =============================================================================


class InfrastructureError(ShelfgateError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """Relational store or session store is unavailable or failed."""


class ExternalServiceError(InfrastructureError):
    """Identity provider exchange failed."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


class FederationConfigError(ConfigurationError):
    """An identity provider record cannot be turned into a SAML strategy."""
