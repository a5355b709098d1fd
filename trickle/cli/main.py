"""Trickle command line entry point."""

import typer

from trickle import __version__
from trickle.cli.allocation import allocation_command
from trickle.cli.bucket import bucket_app
from trickle.cli.events_cmd import events_app
from trickle.cli.settings_cmd import settings_app
from trickle.cli.spend import spend_app
from trickle.cli.status import status_command, timeline_command
from trickle.cli.utils import console
from trickle.core.config import load_config
from trickle.core.logging import setup_logging

app = typer.Typer(
    name="trickle",
    help="Budgeting with a balance that trickles in by the second.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"trickle {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    config = load_config()
    setup_logging("DEBUG" if verbose else config.log_level, json_output=config.log_json)


app.command(name="status")(status_command)
app.command(name="timeline")(timeline_command)
app.command(name="allocation")(allocation_command)
app.add_typer(spend_app, name="spend")
app.add_typer(bucket_app, name="bucket")
app.add_typer(settings_app, name="settings")
app.add_typer(events_app, name="events")


if __name__ == "__main__":
    app()
