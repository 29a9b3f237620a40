"""Describe output rendering."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import typer
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Callable

    from tf_provisioner.engine.types import InstanceDescription


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def _format_tags(tags: dict[str, str]) -> str:
    return ", ".join(f"{k}={v}" if v else k for k, v in sorted(tags.items()))


def describe_table(
    descriptions: list[InstanceDescription], *, show_properties: bool = False
) -> Table:
    """Build a table with one row per described instance."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", no_wrap=True)
    table.add_column("LOGICAL ID")
    table.add_column("TAGS")
    if show_properties:
        table.add_column("PROPERTIES")

    for d in descriptions:
        row = [d.id, d.logical_id or "-", _format_tags(d.tags)]
        if show_properties:
            row.append(json.dumps(d.properties or {}, sort_keys=True))
        table.add_row(*(Text(cell) for cell in row))
    return table


def parse_pairs(pairs: list[str] | None) -> dict[str, str]:
    """Parse ``key=value`` arguments; a bare ``key`` maps to an empty value.

    Raises:
        typer.BadParameter: On an empty key.
    """
    result: dict[str, str] = {}
    for pair in pairs or []:
        key, _, value = pair.partition("=")
        if not key:
            raise typer.BadParameter(f"expected key=value, got '{pair}'")
        result[key] = value
    return result
