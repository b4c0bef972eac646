"""Tests for Config Pydantic Settings."""

import pytest
from pydantic import ValidationError

from shelfgate.config import AuthConfig, Config, Server, SessionConfig


class TestAuthConfig:
    def test_admin_emails_are_split_and_lowercased(self) -> None:
        config = AuthConfig(admin_emails="Ann@Uni1.edu  bob@uni2.edu")

        assert config.admin_email_set == frozenset({"ann@uni1.edu", "bob@uni2.edu"})

    def test_no_admins_by_default(self) -> None:
        assert AuthConfig().admin_email_set == frozenset()

    def test_skip_auth_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELFGATE_AUTH__SKIP_AUTH", "true")

        assert Config().auth.skip_auth is True


class TestConfigSources:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELFGATE_SESSION__APP_MAX_AGE", "7776000")
        monkeypatch.setenv("SHELFGATE_SERVER__APP_URL", "https://read.example.com")

        config = Config()

        assert config.session.app_max_age == 7776000
        assert config.server.app_url == "https://read.example.com"

    def test_yaml_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "shelfgate.yaml"
        config_file.write_text(
            "session:\n  redis_url: redis://cache:6379/0\nauth:\n  admin_emails: root@uni1.edu\n"
        )
        monkeypatch.setenv("SHELFGATE_CONFIG_FILE", str(config_file))

        config = Config()

        assert config.session.redis_url == "redis://cache:6379/0"
        assert config.auth.admin_email_set == frozenset({"root@uni1.edu"})

    def test_env_beats_yaml(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "shelfgate.yaml"
        config_file.write_text("auth:\n  skip_auth: false\n")
        monkeypatch.setenv("SHELFGATE_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("SHELFGATE_AUTH__SKIP_AUTH", "true")

        assert Config().auth.skip_auth is True

    def test_env_prefix(self) -> None:
        assert Config.model_config.get("env_prefix") == "SHELFGATE_"


class TestSessionCookieFlags:
    def test_defaults_survive_the_idp_post(self) -> None:
        config = SessionConfig()

        assert config.same_site == "none"
        assert config.https_only is True

    def test_same_site_none_needs_secure_cookie(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(same_site="none", https_only=False)

    def test_lax_cookie_rejected_for_https_app(self) -> None:
        with pytest.raises(ValidationError, match="same_site"):
            Config(session=SessionConfig(same_site="lax", https_only=True))

    def test_lax_cookie_allowed_for_plain_http_app(self) -> None:
        config = Config(
            server=Server(app_url="http://localhost:8000"),
            session=SessionConfig(same_site="lax", https_only=False),
        )

        assert config.session.same_site == "lax"

    def test_unknown_same_site_value(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(same_site="sometimes")
