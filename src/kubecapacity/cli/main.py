# src/kubecapacity/cli/main.py
"""
Entry point of the `kubecapacity` command.

Logging is configured here, once, from LOG_LEVEL; the subcommands only log.
"""

import logging

import typer

from .. import __version__
from ..core.config import config
from . import usage

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="kubecapacity",
    help="Pod and node CPU/memory usage read from Prometheus, for clusters without metrics-server.",
    add_completion=False,
)


def _print_version():
    typer.echo(f"kubecapacity version: {__version__}")


def version_callback(value: bool):
    if value:
        _print_version()
        raise typer.Exit()


@app.command()
def version():
    """
    Show the installed kubecapacity version.
    """
    _print_version()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    Read current resource usage from Prometheus in the metrics.k8s.io shape.
    """


app.add_typer(usage.app, name="usage")


if __name__ == "__main__":
    app()
