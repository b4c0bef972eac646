"""CLI commands and the helpers they share."""

import sys

from pydantic import ValidationError

from shelfgate.cli.console import get_console
from shelfgate.config import Config


def load_config() -> Config:
    """Load settings, exiting with a readable error when they are invalid."""
    try:
        # Pydantic Settings populates from env vars at runtime
        return Config()  # type: ignore[call-arg]
    except ValidationError as e:
        console = get_console()
        console.error("Invalid configuration")
        for err in e.errors():
            loc = ".".join(str(x) for x in err.get("loc", []))
            console.info(f"  {loc}: {err.get('msg', 'Unknown error')}")
        sys.exit(1)
