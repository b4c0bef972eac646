"""ASGI entry point: `uvicorn shelfgate.main:app`."""

from shelfgate.application.api.rest.app import create_app

# Note: Logfire must be configured before this module is imported
app = create_app()
