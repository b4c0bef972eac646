import logging
import os
import sys
from pathlib import Path
from typing import Any, Literal, Self

import yaml
from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by SHELFGATE_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("SHELFGATE_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Server(BaseModel):
    """Server configuration (nested in Config, uses env_nested_delimiter)."""

    name: str = "shelfgate"
    version: str = "0.1.0"
    description: str = "Federated sign-on gateway for the reader library"
    app_url: str = "https://read.biblemesh.com"  # Base URL for SAML issuer/callbacks
    require_https: bool = False


class DatabaseConfig(BaseModel):
    """Database configuration (nested in Config, uses env_nested_delimiter)."""

    url: str = "sqlite+aiosqlite:///~/.local/share/shelfgate/shelfgate.db"
    echo: bool = False
    auto_migrate: bool = True  # Run alembic upgrade before serving


class SessionConfig(BaseModel):
    """Session cookie and store configuration."""

    secret: str = "secret"  # Must be set in production
    cookie_name: str = "shelfgate.sid"
    max_age: int | None = None  # Seconds; None = browser-session cookie
    app_max_age: int | None = None  # Seconds; extended lifetime for app-flagged requests
    redis_url: str = ""  # Empty = in-process store (single worker only)
    # The IdP posts the assertion back cross-site; only a SameSite=None cookie
    # survives that POST, and browsers only accept None on Secure cookies
    same_site: Literal["lax", "strict", "none"] = "none"
    https_only: bool = True

    @model_validator(mode="after")
    def check_cookie_flags(self) -> Self:
        if self.same_site == "none" and not self.https_only:
            raise ValueError("same_site=none requires https_only")
        return self


class AuthConfig(BaseModel):
    """Authentication configuration."""

    admin_emails: str = ""  # Space-delimited, compared case-insensitively
    skip_auth: bool = False  # Bypass mode: synthesize a fixed superuser

    @property
    def admin_email_set(self) -> frozenset[str]:
        return frozenset(e.lower() for e in self.admin_emails.split() if e)


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from SHELFGATE_LOG_FILE env var."""
        return os.environ.get("SHELFGATE_LOG_FILE")


class Config(BaseSettings):
    # These are BaseModel, so env_nested_delimiter handles their env vars
    server: Server = Server()
    database: DatabaseConfig = DatabaseConfig()
    session: SessionConfig = SessionConfig()
    auth: AuthConfig = AuthConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "SHELFGATE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows SHELFGATE_AUTH__SKIP_AUTH override
    }

    @model_validator(mode="after")
    def check_login_cookie(self) -> Self:
        """Refuse https deployments whose session cookie the IdP callback would drop.

        Without the cookie the callback starts a fresh session, losing the
        remembered URL and any extended app lifetime.
        """
        if self.server.app_url.startswith("https://") and self.session.same_site != "none":
            raise ValueError(
                f"session.same_site={self.session.same_site} drops the session on the "
                "IdP callback; use same_site=none with https_only for an https app_url"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - SHELFGATE_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup, before other modules
    are imported to ensure all loggers pick up the configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(config.level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("onelogin").setLevel(logging.WARNING)
    logging.getLogger("xmlsec").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
