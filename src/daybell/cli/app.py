"""Main CLI application."""

import typer

from daybell.cli.commands import (
    config,
    init,
    ledger,
    placeholder,
    serve,
    service,
    tasks,
)

app = typer.Typer(
    name="daybell",
    help="Daybell - run commands once a day at a set time",
    no_args_is_help=True,
)

for _module in (init, serve, service, tasks, placeholder, ledger, config):
    _module.register(app)


if __name__ == "__main__":
    app()
