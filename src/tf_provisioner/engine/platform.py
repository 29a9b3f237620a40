"""Provider-specific fixups applied to a VM's property bag before write."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any

from tf_provisioner.core.providers import traits_for
from tf_provisioner.core.tags import LOGICAL_ID_TAG, NAME_TAG
from tf_provisioner.engine.decompose import HOSTNAME_PREFIX_PROPERTY

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tf_provisioner.core.document import Properties

logger = logging.getLogger(__name__)

PRIVATE_IP_PROPERTY = "private_ip"
LOGICAL_ID_PLACEHOLDER = "INSTANCE_LOGICAL_ID"


def _init_container(properties: Properties, path: tuple[str, ...]) -> dict[str, Any]:
    container = properties
    for key in path[:-1]:
        child = container.get(key)
        if not isinstance(child, dict):
            child = container[key] = {}
        container = child
    return container


def merge_init_script(init: str, vm_type: str, properties: Properties) -> None:
    """Append *init* to the VM's own init data, user-supplied data first."""
    if not init:
        return
    path = traits_for(vm_type).init_path
    container = _init_container(properties, path)
    existing = container.get(path[-1])
    container[path[-1]] = f"{existing}\n{init}" if existing else init


def _hostname(prefix: Any, instance_id: str, logical_id: str | None) -> str:
    if isinstance(prefix, str) and prefix.strip():
        suffix = logical_id or instance_id.rsplit("-", 1)[-1]
        return f"{prefix}-{suffix}"
    return logical_id or instance_id


def platform_specific_updates(
    vm_type: str, instance_id: str, logical_id: str | None, properties: Properties | None
) -> None:
    """Apply hostname, private IP and init encoding rules in place."""
    if properties is None:
        return
    traits = traits_for(vm_type)

    prefix = properties.pop(HOSTNAME_PREFIX_PROPERTY, None)
    if traits.hostname_property is not None:
        properties[traits.hostname_property] = _hostname(prefix, instance_id, logical_id)

    private_ip = properties.get(PRIVATE_IP_PROPERTY)
    if traits.logical_id_private_ip and private_ip == LOGICAL_ID_PLACEHOLDER:
        if logical_id:
            properties[PRIVATE_IP_PROPERTY] = logical_id
        else:
            del properties[PRIVATE_IP_PROPERTY]

    if traits.base64_init:
        container = _init_container(properties, traits.init_path)
        key = traits.init_path[-1]
        value = container.get(key)
        if isinstance(value, str):
            container[key] = base64.b64encode(value.encode("utf-8")).decode("ascii")


def provision_tags(
    tags: Mapping[str, str], instance_id: str, logical_id: str | None = None
) -> dict[str, str]:
    """Caller tags plus ``Name`` (unless any-case ``name`` is given) and ``LogicalID``."""
    result = dict(tags)
    if not any(k.lower() == NAME_TAG.lower() for k in result):
        result[NAME_TAG] = instance_id
    if logical_id:
        result[LOGICAL_ID_TAG] = logical_id
    return result
