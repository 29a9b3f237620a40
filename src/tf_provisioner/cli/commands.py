"""CLI command implementations."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from tf_provisioner.cli import app
from tf_provisioner.cli.errors import handle_error

if TYPE_CHECKING:
    from tf_provisioner.engine.reconciler import InstancePlugin

ConfigPath = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to the settings file."),
]

Directory = Annotated[
    Path | None,
    typer.Option("--dir", "-d", help="Document directory (overrides the settings file)."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

SpecPath = Annotated[
    Path,
    typer.Argument(help="Instance spec file (YAML or JSON)."),
]

Tags = Annotated[
    list[str] | None,
    typer.Option("--tag", "-t", help="Tag as key=value (repeatable)."),
]


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


def _plugin(config: Path | None, directory: Path | None) -> InstancePlugin:
    from tf_provisioner.config import load, plugin_from_config

    return plugin_from_config(load(config), directory=directory)


@app.command()
def validate(
    spec: SpecPath,
    config: ConfigPath = None,
    directory: Directory = None,
    no_color: NoColor = False,
) -> None:
    """Validate an instance spec without writing anything."""
    from tf_provisioner.cli.formatting import styler
    from tf_provisioner.config import load_instance_spec

    color = _use_color(no_color)
    try:
        instance_spec = load_instance_spec(spec)
        _plugin(config, directory).validate(instance_spec.properties)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)("Instance spec is valid.", fg="green"))


@app.command()
def provision(
    spec: SpecPath,
    tag: Tags = None,
    logical_id: Annotated[
        str | None,
        typer.Option("--logical-id", help="Stable identity of the instance."),
    ] = None,
    config: ConfigPath = None,
    directory: Directory = None,
    no_color: NoColor = False,
) -> None:
    """Stage the documents for a new instance and print its ID."""
    from tf_provisioner.cli.formatting import parse_pairs
    from tf_provisioner.config import load_instance_spec

    color = _use_color(no_color)
    try:
        instance_spec = load_instance_spec(spec)
        overrides = parse_pairs(tag)
        if overrides:
            instance_spec.tags = {**instance_spec.tags, **overrides}
        if logical_id:
            instance_spec.logical_id = logical_id
        instance_id = _plugin(config, directory).provision(instance_spec)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(instance_id)


@app.command()
def destroy(
    instance_id: Annotated[str, typer.Argument(help="Instance to destroy.")],
    rolling_update: Annotated[
        bool,
        typer.Option(
            "--rolling-update",
            help="Keep companion documents for the replacement instance.",
        ),
    ] = False,
    config: ConfigPath = None,
    directory: Directory = None,
    no_color: NoColor = False,
) -> None:
    """Remove an instance's documents."""
    from tf_provisioner.cli.formatting import styler
    from tf_provisioner.engine.types import DestroyContext

    color = _use_color(no_color)
    context = DestroyContext.ROLLING_UPDATE if rolling_update else DestroyContext.TERMINATION
    try:
        _plugin(config, directory).destroy(instance_id, context)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)(f"Destroyed {instance_id}.", fg="green"))


@app.command()
def label(
    instance_id: Annotated[str, typer.Argument(help="Instance to label.")],
    labels: Annotated[
        list[str] | None,
        typer.Argument(help="Labels as key=value."),
    ] = None,
    config: ConfigPath = None,
    directory: Directory = None,
    no_color: NoColor = False,
) -> None:
    """Merge labels into an instance's tags."""
    from tf_provisioner.cli.formatting import parse_pairs, styler

    color = _use_color(no_color)
    try:
        _plugin(config, directory).label(instance_id, parse_pairs(labels))
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)(f"Labelled {instance_id}.", fg="green"))


@app.command()
def describe(
    tag: Tags = None,
    properties: Annotated[
        bool,
        typer.Option("--properties", help="Include each instance's properties."),
    ] = False,
    config: ConfigPath = None,
    directory: Directory = None,
    no_color: NoColor = False,
) -> None:
    """List the instances whose tags match every --tag given."""
    from rich.console import Console

    from tf_provisioner.cli.formatting import describe_table, parse_pairs

    color = _use_color(no_color)
    try:
        descriptions = _plugin(config, directory).describe_instances(
            parse_pairs(tag), properties=properties
        )
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if not descriptions:
        typer.echo("No instances found.")
        return

    Console(no_color=not color).print(
        describe_table(descriptions, show_properties=properties)
    )
