"""Instance variable substitution.

Spec properties and init scripts may reference a small fixed set of
per-instance variables with ``{{ var `/self/instId` }}`` placeholders.
"""

from __future__ import annotations

import re
from typing import Any

from tf_provisioner.errors import TemplateError

VAR_INSTANCE_ID = "/self/instId"
VAR_LOGICAL_ID = "/self/logicalId"
VAR_ATTACH_ID = "/self/dedicated/attachId"

_PLACEHOLDER = re.compile(r"\{\{\s*var\s+[`\"']([^`\"']+)[`\"']\s*\}\}")


def instance_variables(
    instance_id: str, logical_id: str | None = None, attach_id: str = ""
) -> dict[str, str]:
    """Build the variable map; unset optional variables render as ``""``."""
    return {
        VAR_INSTANCE_ID: instance_id,
        VAR_LOGICAL_ID: logical_id or "",
        VAR_ATTACH_ID: attach_id,
    }


def render(value: Any, variables: dict[str, str]) -> Any:
    """Replace ``{{ var ... }}`` placeholders in string values, recursively.

    Raises:
        TemplateError: A placeholder names a variable not in *variables*.
    """
    if isinstance(value, str):
        return _PLACEHOLDER.sub(lambda m: _lookup(m.group(1), variables), value)
    if isinstance(value, dict):
        return {k: render(v, variables) for k, v in value.items()}
    if isinstance(value, list):
        return [render(v, variables) for v in value]
    return value


def _lookup(name: str, variables: dict[str, str]) -> str:
    try:
        return variables[name]
    except KeyError as e:
        raise TemplateError(f"Unknown template variable: {name}") from e
