"""Login commands for the SAML sign-on flow."""

from dataclasses import dataclass

from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.auth.port.saml_strategy import SamlRequest, SamlStrategy
from shelfgate.domain.auth.service.login import LoginProvisioner
from shelfgate.domain.shared.command import Command, CommandHandler, Result
from shelfgate.domain.shared.error import NotFoundError
from shelfgate.domain.shared.port.uow import UnitOfWork


def resolve_strategy(registry: ProviderRegistry, code: str) -> SamlStrategy:
    strategy = registry.get(code)
    if strategy is None:
        raise NotFoundError(f"Unknown identity provider: {code}", code="unknown_provider")
    return strategy


class InitiateLogin(Command):
    """Command to start a SAML login against one IdP."""

    idp_code: str
    relay_state: str | None = None


class InitiateLoginResult(Result):
    """Result containing the IdP redirect."""

    login_url: str


@dataclass
class InitiateLoginHandler(CommandHandler[InitiateLogin, InitiateLoginResult]):
    """Handler for InitiateLogin command."""

    provider_registry: ProviderRegistry

    async def run(self, cmd: InitiateLogin) -> InitiateLoginResult:
        strategy = resolve_strategy(self.provider_registry, cmd.idp_code)
        return InitiateLoginResult(login_url=strategy.get_login_url(cmd.relay_state))


class CompleteLogin(Command):
    """Command to consume an IdP's POSTed assertion."""

    idp_code: str
    request: SamlRequest


class CompleteLoginResult(Result):
    """Result containing the profile to bind to the session."""

    profile: SessionProfile


@dataclass
class CompleteLoginHandler(CommandHandler[CompleteLogin, CompleteLoginResult]):
    """Handler for CompleteLogin command."""

    provider_registry: ProviderRegistry
    provisioner: LoginProvisioner
    uow: UnitOfWork

    async def run(self, cmd: CompleteLogin) -> CompleteLoginResult:
        """Validate the assertion, provision the user and commit.

        The profile is only returned once the user row is durable.
        """
        strategy = resolve_strategy(self.provider_registry, cmd.idp_code)
        assertion = strategy.process_response(cmd.request)
        profile = await self.provisioner.provision(strategy.idp, assertion)
        await self.uow.commit()
        return CompleteLoginResult(profile=profile)
