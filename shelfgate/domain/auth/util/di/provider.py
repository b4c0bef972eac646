"""DI provider for auth domain."""

from dishka import from_context, provide
from starlette.requests import Request

from shelfgate.config import Config
from shelfgate.domain.auth.command.login import CompleteLoginHandler, InitiateLoginHandler
from shelfgate.domain.auth.command.logout import LogoutHandler
from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.port.repository import BookLicenseRepository, UserRepository
from shelfgate.domain.auth.query.metadata import GetMetadataHandler
from shelfgate.domain.auth.service.access import AccessFilter
from shelfgate.domain.auth.service.gate import RequestGate
from shelfgate.domain.auth.service.login import LoginProvisioner
from shelfgate.domain.shared.error import AuthorizationError
from shelfgate.util.di.base import Provider
from shelfgate.util.di.scope import Scope

PROFILE_STATE_KEY = "profile"
"""request.state attribute the gate middleware stores the allowed profile under."""


class AuthProvider(Provider):
    """DI provider for auth domain services and handlers."""

    request = from_context(provides=Request, scope=Scope.UOW)

    # Command Handlers
    initiate_login_handler = provide(InitiateLoginHandler, scope=Scope.UOW)
    complete_login_handler = provide(CompleteLoginHandler, scope=Scope.UOW)
    logout_handler = provide(LogoutHandler, scope=Scope.UOW)

    # Query Handlers
    get_metadata_handler = provide(GetMetadataHandler, scope=Scope.UOW)

    @provide(scope=Scope.UOW)
    def get_access_filter(self, book_license_repo: BookLicenseRepository) -> AccessFilter:
        return AccessFilter(_book_license_repo=book_license_repo)

    @provide(scope=Scope.UOW)
    def get_login_provisioner(
        self,
        config: Config,
        user_repo: UserRepository,
        access_filter: AccessFilter,
    ) -> LoginProvisioner:
        """Provide LoginProvisioner with the configured admin allowlist."""
        return LoginProvisioner(
            _user_repo=user_repo,
            _access_filter=access_filter,
            _admin_emails=config.auth.admin_email_set,
        )

    @provide(scope=Scope.UOW)
    def get_request_gate(self, config: Config, access_filter: AccessFilter) -> RequestGate:
        return RequestGate(
            _access_filter=access_filter,
            _skip_auth=config.auth.skip_auth,
            _app_session_max_age=config.session.app_max_age,
        )

    @provide(scope=Scope.UOW)
    def get_session_profile(self, request: Request) -> SessionProfile:
        """Profile admitted by the request gate for this request.

        Raises:
            AuthorizationError: If the request was not admitted with a profile
        """
        profile = getattr(request.state, PROFILE_STATE_KEY, None)
        if isinstance(profile, SessionProfile):
            return profile
        raise AuthorizationError("Please login", code="login_required")
