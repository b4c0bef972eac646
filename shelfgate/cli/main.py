"""Main CLI application using Cyclopts."""

import cyclopts

from shelfgate.cli.commands import idp, server

app = cyclopts.App(
    name="shelfgate",
    help="Federated sign-on gateway for the reader library",
)

app.command(server.serve, name="serve")
app.command(server.migrate, name="migrate")
app.command(idp.app, name="idp")
app.command(idp.metadata, name="metadata")

if __name__ == "__main__":
    app()
