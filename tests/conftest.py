"""Global test fixtures."""

import os

import logfire

# Keep Config from picking up a developer's YAML file
os.environ.pop("SHELFGATE_CONFIG_FILE", None)

# create_app instruments FastAPI; keep spans local during tests
logfire.configure(send_to_logfire=False, console=False)
