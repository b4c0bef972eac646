"""Logout command: federated single logout when the IdP supports it."""

import logging
from dataclasses import dataclass

from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.shared.command import Command, CommandHandler, Result

logger = logging.getLogger(__name__)

LOGOUT_CALLBACK_PATH = "/logout/callback"


class Logout(Command):
    """Command to end the caller's session."""

    profile: SessionProfile | None = None


class LogoutResult(Result):
    """Where to send the caller next."""

    redirect_url: str
    single_logout: bool


@dataclass
class LogoutHandler(CommandHandler[Logout, LogoutResult]):
    """Handler for Logout command."""

    provider_registry: ProviderRegistry

    async def run(self, cmd: Logout) -> LogoutResult:
        profile = cmd.profile
        logger.info("Logout: user_id=%s", profile.id if profile else None)

        strategy = self.provider_registry.get(profile.idp_code) if profile else None
        if profile is not None and strategy is not None and profile.supports_single_logout:
            url = strategy.get_logout_url(profile)
            if url:
                logger.debug("Redirect to SLO for idp %s", profile.idp_code)
                return LogoutResult(redirect_url=url, single_logout=True)

        logger.info("No call to SLO")
        return LogoutResult(redirect_url=LOGOUT_CALLBACK_PATH, single_logout=False)
