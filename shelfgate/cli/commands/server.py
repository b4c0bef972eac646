"""Server and database commands."""

import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from shelfgate.cli.commands import load_config
from shelfgate.cli.console import get_console
from shelfgate.infrastructure.persistence.migrate import run_migrations


def serve(host: str = "0.0.0.0", port: int = 8000, workers: int = 1) -> None:
    """Run the HTTP server in the foreground.

    Args:
        host: Host to bind to.
        port: Port to listen on.
        workers: Worker processes. More than one needs a Redis session store.
    """
    console = get_console()
    config = load_config()

    if workers > 1 and not config.session.redis_url:
        console.error(
            "Multiple workers need a shared session store",
            hint="Set SHELFGATE_SESSION__REDIS_URL",
        )
        raise SystemExit(1)

    if config.database.auto_migrate:
        with console.status("Running database migrations..."):
            run_migrations(config.database.url)
        console.success("Migrations complete")

    console.info(f"Serving on http://{host}:{port}")
    uvicorn.run(
        "shelfgate.main:app",
        host=host,
        port=port,
        workers=workers,
        proxy_headers=True,
        access_log=True,
    )


def migrate(revision: str = "head") -> None:
    """Upgrade the database schema.

    Args:
        revision: Target Alembic revision.
    """
    console = get_console()
    config = load_config()
    try:
        run_migrations(config.database.url, revision)
    except SQLAlchemyError as e:
        console.error(f"Migration failed: {e}")
        raise SystemExit(1) from e
    console.success(f"Database at revision {revision}")
