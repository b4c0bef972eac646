"""Identity provider inspection commands."""

import asyncio

import cyclopts
from dishka import AsyncContainer

from shelfgate.application.di import create_container
from shelfgate.cli.commands import load_config
from shelfgate.cli.console import get_console
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.shared.error import ShelfgateError

app = cyclopts.App(name="idp", help="Inspect registered identity providers")


async def _load_registry() -> tuple[ProviderRegistry, AsyncContainer]:
    container = create_container(load_config())
    return await container.get(ProviderRegistry), container


@app.command(name="list")
def list_providers() -> None:
    """List the identity providers that registered successfully."""

    async def _run() -> list[dict]:
        registry, container = await _load_registry()
        try:
            rows = []
            for code in registry.available_providers():
                idp = registry.get(code).idp  # type: ignore[union-attr]
                rows.append(
                    {
                        "code": idp.code,
                        "name": idp.name,
                        "issuer": idp.issuer,
                        "slo": "yes" if idp.logout_url else "no",
                    }
                )
            return rows
        finally:
            await container.close()

    rows = asyncio.run(_run())
    console = get_console()
    if not rows:
        console.warning("No identity providers registered")
        return
    console.table(
        rows,
        [("code", "Code"), ("name", "Name"), ("issuer", "Issuer"), ("slo", "SLO")],
        title="Identity providers",
    )


@app.command
def metadata(code: str) -> None:
    """Print the signed SP metadata for one identity provider.

    Args:
        code: IdP code.
    """

    async def _run() -> str:
        registry, container = await _load_registry()
        try:
            strategy = registry.get(code)
            if strategy is None:
                raise SystemExit(f"Unknown identity provider: {code}")
            return strategy.get_metadata()
        finally:
            await container.close()

    console = get_console()
    try:
        console.raw(asyncio.run(_run()))
    except ShelfgateError as e:
        console.error(e.message)
        raise SystemExit(1) from e
