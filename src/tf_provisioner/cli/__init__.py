"""Command-line entry point: ``tf-provisioner``."""

from __future__ import annotations

import logging
import os
import sys

import typer

from tf_provisioner import __version__

app = typer.Typer(
    name="tf-provisioner",
    help="Decompose instance specs into terraform resource documents.",
    no_args_is_help=True,
    add_completion=False,
)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_LOG_ENV = "TFP_LOG"
_VERBOSITY = {1: logging.INFO, 2: logging.DEBUG}


def _env_log_level() -> int | None:
    """Level named by ``TFP_LOG``; None when unset, INFO when unrecognised."""
    name = os.environ.get(_LOG_ENV, "").strip().upper()
    if not name:
        return None
    level = logging.getLevelNamesMapping().get(name)
    if level is None or name == "NOTSET":
        print(
            f"WARNING: invalid {_LOG_ENV} level '{name}', defaulting to INFO",
            file=sys.stderr,
        )
        return logging.INFO
    return level


def _configure_logging(verbose: int) -> None:
    """Route ``tf_provisioner`` records to stderr; ``TFP_LOG`` beats ``-v``."""
    level = _env_log_level()
    if level is None:
        if verbose <= 0:
            return
        level = _VERBOSITY[min(verbose, max(_VERBOSITY))]
    logging.basicConfig(
        level=logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("tf_provisioner").setLevel(level)


def _print_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"tf-provisioner version {__version__} (python {sys.version.split()[0]})")
    raise typer.Exit


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Print the version and exit.",
        callback=_print_version,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Log more (-v info, -vv debug). TFP_LOG=<level> takes precedence.",
    ),
) -> None:
    _ = version
    _configure_logging(verbose)


from tf_provisioner.cli import commands as _commands  # noqa: E402, F401
