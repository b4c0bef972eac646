"""Unit tests for RequestGate decisions."""

from unittest.mock import AsyncMock

import pytest

from shelfgate.domain.auth.model.profile import SESSION_PROFILE_KEY, SessionProfile
from shelfgate.domain.auth.service.access import AccessFilter
from shelfgate.domain.auth.service.gate import (
    Allow,
    DenyWidget,
    GateRequest,
    RedirectToLogin,
    Reject,
    RequestGate,
)


def make_gate(
    skip_auth: bool = False,
    app_max_age: int | None = None,
    licensed: set[int] | None = None,
) -> tuple[RequestGate, AsyncMock]:
    license_repo = AsyncMock()
    license_repo.licensed_book_ids.return_value = licensed or set()
    gate = RequestGate(
        _access_filter=AccessFilter(_book_license_repo=license_repo),
        _skip_auth=skip_auth,
        _app_session_max_age=app_max_age,
    )
    return gate, license_repo


def logged_in_session() -> dict:
    profile = SessionProfile(
        id=42,
        email="a@uni1.edu",
        book_ids=[1, 2],
        idp_code="uni1",
        idp_name="University One",
    )
    return {SESSION_PROFILE_KEY: profile.to_session()}


class TestAuthenticated:
    @pytest.mark.asyncio
    async def test_session_profile_allows_any_request(self):
        gate, _ = make_gate()

        decision = await gate.evaluate(GateRequest("POST", "/api/anything"), logged_in_session())

        assert isinstance(decision, Allow)
        assert decision.profile.id == 42
        assert decision.synthetic is False

    @pytest.mark.asyncio
    async def test_unreadable_profile_counts_as_anonymous(self):
        gate, _ = make_gate()

        decision = await gate.evaluate(
            GateRequest("GET", "/api/anything"), {SESSION_PROFILE_KEY: {"id": "x"}}
        )

        assert isinstance(decision, Reject)


class TestBypass:
    @pytest.mark.asyncio
    async def test_bypass_synthesizes_superuser(self):
        gate, license_repo = make_gate(skip_auth=True, licensed={3, 1})

        decision = await gate.evaluate(GateRequest("GET", "/anything"), {})

        assert isinstance(decision, Allow)
        assert decision.synthetic is True
        profile = decision.profile
        assert profile.id == 1
        assert profile.is_admin is True
        assert profile.idp_code == "bm"
        assert profile.book_ids == [1, 3]
        license_repo.licensed_book_ids.assert_awaited_once_with(["bm"], None)

    @pytest.mark.asyncio
    async def test_real_session_wins_over_bypass(self):
        gate, license_repo = make_gate(skip_auth=True)

        decision = await gate.evaluate(GateRequest("GET", "/"), logged_in_session())

        assert decision.profile.id == 42
        license_repo.licensed_book_ids.assert_not_awaited()


class TestInteractive:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path,query", [("/", ""), ("/", "q=1"), ("/book/12", "")])
    async def test_library_paths_redirect_to_login(self, path, query):
        gate, _ = make_gate()

        decision = await gate.evaluate(GateRequest("GET", path, query_string=query), {})

        assert isinstance(decision, RedirectToLogin)
        assert decision.location == "/login"
        assert decision.return_url == (f"{path}?{query}" if query else path)
        assert decision.session_max_age is None

    @pytest.mark.asyncio
    async def test_app_user_setup_redirects_with_extended_lifetime(self):
        gate, _ = make_gate(app_max_age=86400)

        decision = await gate.evaluate(
            GateRequest("GET", "/usersetup.json", is_app_request=True), {}
        )

        assert isinstance(decision, RedirectToLogin)
        assert decision.return_url == "/usersetup.json"
        assert decision.session_max_age == 86400

    @pytest.mark.asyncio
    async def test_user_setup_without_app_header_is_rejected(self):
        gate, _ = make_gate()

        decision = await gate.evaluate(GateRequest("GET", "/usersetup.json"), {})

        assert isinstance(decision, Reject)

    @pytest.mark.asyncio
    async def test_app_header_does_not_extend_library_redirect_without_config(self):
        gate, _ = make_gate()

        decision = await gate.evaluate(GateRequest("GET", "/book/1", is_app_request=True), {})

        assert isinstance(decision, RedirectToLogin)
        assert decision.session_max_age is None

    @pytest.mark.asyncio
    async def test_widget_gets_denial_payload(self):
        gate, _ = make_gate()

        decision = await gate.evaluate(
            GateRequest("GET", "/book/12", query_string="widget=1", is_widget=True), {}
        )

        assert isinstance(decision, DenyWidget)
        html = decision.render()
        assert "parent.postMessage" in html
        assert "action: 'forbidden'" in html
        assert "iframeid: window.name" in html

    @pytest.mark.asyncio
    async def test_post_to_library_path_is_rejected(self):
        gate, _ = make_gate()

        decision = await gate.evaluate(GateRequest("POST", "/"), {})

        assert isinstance(decision, Reject)


class TestReject:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/books", "/book/1/chapter/2", "/epub_content/x"])
    async def test_other_paths_are_rejected(self, path):
        gate, _ = make_gate()

        decision = await gate.evaluate(GateRequest("GET", path), {})

        assert isinstance(decision, Reject)
        assert decision.status_code == 403
        assert decision.error == "Please login"
