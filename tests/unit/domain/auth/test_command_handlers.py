"""Unit tests for login, logout and metadata handlers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shelfgate.domain.auth.command.login import (
    CompleteLogin,
    CompleteLoginHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from shelfgate.domain.auth.command.logout import LOGOUT_CALLBACK_PATH, Logout, LogoutHandler
from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.port.saml_strategy import AssertionInfo, SamlRequest
from shelfgate.domain.auth.query.metadata import GetMetadata, GetMetadataHandler
from shelfgate.domain.shared.error import (
    AuthenticationError,
    NotFoundError,
    StorageUnavailableError,
)
from shelfgate.infrastructure.auth.provider_registry import InMemoryProviderRegistry


def make_strategy(code: str = "uni1") -> MagicMock:
    strategy = MagicMock()
    strategy.idp = Idp(
        code=code,
        name="University One",
        entry_point="https://idp.uni1.edu/sso",
        idp_cert="MIIC",
        sp_key="KEY",
        sp_cert="CERT",
    )
    strategy.get_login_url.return_value = "https://idp.uni1.edu/sso?SAMLRequest=abc"
    strategy.get_metadata.return_value = "<md:EntityDescriptor/>"
    strategy.get_logout_url.return_value = "https://idp.uni1.edu/slo?SAMLRequest=xyz"
    return strategy


def make_profile(**overrides) -> SessionProfile:
    fields = {
        "id": 42,
        "email": "a@uni1.edu",
        "idp_code": "uni1",
        "idp_name": "University One",
        "name_id": "nid-1",
        "name_id_format": "urn:oasis:names:tc:SAML:1.1:nameid-format:unspecified",
        "session_index": "s-1",
    }
    fields.update(overrides)
    return SessionProfile(**fields)


class TestInitiateLogin:
    @pytest.mark.asyncio
    async def test_returns_idp_redirect(self):
        strategy = make_strategy()
        handler = InitiateLoginHandler(provider_registry=InMemoryProviderRegistry({"uni1": strategy}))

        result = await handler.run(InitiateLogin(idp_code="uni1"))

        assert result.login_url.startswith("https://idp.uni1.edu/sso")
        strategy.get_login_url.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_unknown_idp(self):
        handler = InitiateLoginHandler(provider_registry=InMemoryProviderRegistry())

        with pytest.raises(NotFoundError) as exc:
            await handler.run(InitiateLogin(idp_code="nope"))
        assert exc.value.code == "unknown_provider"


class TestCompleteLogin:
    @pytest.mark.asyncio
    async def test_validates_then_provisions(self):
        strategy = make_strategy()
        assertion = AssertionInfo(attributes={"idpUserId": "u-77"})
        strategy.process_response.return_value = assertion
        provisioner = AsyncMock()
        provisioner.provision.return_value = make_profile()
        handler = CompleteLoginHandler(
            provider_registry=InMemoryProviderRegistry({"uni1": strategy}),
            provisioner=provisioner,
            uow=AsyncMock(),
        )
        request = SamlRequest(path="/login/uni1/callback", post_data={"SAMLResponse": "x"})

        result = await handler.run(CompleteLogin(idp_code="uni1", request=request))

        assert result.profile.id == 42
        strategy.process_response.assert_called_once_with(request)
        provisioner.provision.assert_awaited_once_with(strategy.idp, assertion)

    @pytest.mark.asyncio
    async def test_invalid_response_never_provisions(self):
        strategy = make_strategy()
        strategy.process_response.side_effect = AuthenticationError("Bad login.", code="bad_login")
        provisioner = AsyncMock()
        handler = CompleteLoginHandler(
            provider_registry=InMemoryProviderRegistry({"uni1": strategy}),
            provisioner=provisioner,
            uow=AsyncMock(),
        )

        with pytest.raises(AuthenticationError):
            await handler.run(
                CompleteLogin(idp_code="uni1", request=SamlRequest(path="/login/uni1/callback"))
            )
        provisioner.provision.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commits_after_provisioning(self):
        strategy = make_strategy()
        calls = []
        provisioner = AsyncMock()

        async def provision(idp, assertion):
            calls.append("provision")
            return make_profile()

        async def commit():
            calls.append("commit")

        provisioner.provision.side_effect = provision
        uow = AsyncMock()
        uow.commit.side_effect = commit
        handler = CompleteLoginHandler(
            provider_registry=InMemoryProviderRegistry({"uni1": strategy}),
            provisioner=provisioner,
            uow=uow,
        )

        await handler.run(
            CompleteLogin(idp_code="uni1", request=SamlRequest(path="/login/uni1/callback"))
        )

        assert calls == ["provision", "commit"]

    @pytest.mark.asyncio
    async def test_failed_commit_yields_no_profile(self):
        strategy = make_strategy()
        provisioner = AsyncMock()
        provisioner.provision.return_value = make_profile()
        uow = AsyncMock()
        uow.commit.side_effect = StorageUnavailableError("Commit failed", code="store_failure")
        handler = CompleteLoginHandler(
            provider_registry=InMemoryProviderRegistry({"uni1": strategy}),
            provisioner=provisioner,
            uow=uow,
        )

        with pytest.raises(StorageUnavailableError):
            await handler.run(
                CompleteLogin(idp_code="uni1", request=SamlRequest(path="/login/uni1/callback"))
            )


class TestLogout:
    @pytest.mark.asyncio
    async def test_single_logout_when_supported(self):
        strategy = make_strategy()
        handler = LogoutHandler(provider_registry=InMemoryProviderRegistry({"uni1": strategy}))
        profile = make_profile()

        result = await handler.run(Logout(profile=profile))

        assert result.single_logout is True
        assert result.redirect_url.startswith("https://idp.uni1.edu/slo")
        strategy.get_logout_url.assert_called_once_with(profile)

    @pytest.mark.asyncio
    async def test_local_logout_without_name_id(self):
        strategy = make_strategy()
        handler = LogoutHandler(provider_registry=InMemoryProviderRegistry({"uni1": strategy}))

        result = await handler.run(Logout(profile=make_profile(name_id=None)))

        assert result.single_logout is False
        assert result.redirect_url == LOGOUT_CALLBACK_PATH
        strategy.get_logout_url.assert_not_called()

    @pytest.mark.asyncio
    async def test_local_logout_when_idp_has_no_slo(self):
        strategy = make_strategy()
        strategy.get_logout_url.return_value = None
        handler = LogoutHandler(provider_registry=InMemoryProviderRegistry({"uni1": strategy}))

        result = await handler.run(Logout(profile=make_profile()))

        assert result.redirect_url == LOGOUT_CALLBACK_PATH

    @pytest.mark.asyncio
    async def test_anonymous_logout(self):
        handler = LogoutHandler(provider_registry=InMemoryProviderRegistry())

        result = await handler.run(Logout(profile=None))

        assert result.redirect_url == LOGOUT_CALLBACK_PATH


class TestGetMetadata:
    @pytest.mark.asyncio
    async def test_returns_strategy_metadata(self):
        handler = GetMetadataHandler(
            provider_registry=InMemoryProviderRegistry({"uni1": make_strategy()})
        )

        result = await handler.run(GetMetadata(idp_code="uni1"))

        assert result.metadata == "<md:EntityDescriptor/>"

    @pytest.mark.asyncio
    async def test_unknown_idp(self):
        handler = GetMetadataHandler(provider_registry=InMemoryProviderRegistry())

        with pytest.raises(NotFoundError):
            await handler.run(GetMetadata(idp_code="nope"))
