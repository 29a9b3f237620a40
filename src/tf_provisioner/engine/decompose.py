"""Split one composite resource document into per-scope documents.

Every auxiliary resource carries an optional ``@scope``:

- ``default`` (or absent): copied into the VM's own document, once per instance.
- ``dedicated`` / ``dedicated-<group>``: shared by the instances of a dedicated
  group, stored in ``<group>_dedicated_<key>`` (group ``default`` when omitted).
- any other value ``S``: shared cluster-wide, stored in ``S_global``.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

from tf_provisioner.core.document import ResourceDocument, find_vm
from tf_provisioner.core.persistence import base_name
from tf_provisioner.core.tags import ATTACH_TAG, merge_tags_into_properties
from tf_provisioner.engine.attachments import dedicated_attach_key
from tf_provisioner.engine.types import Decomposition
from tf_provisioner.errors import SpecError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tf_provisioner.core.document import Properties

logger = logging.getLogger(__name__)

SCOPE_PROPERTY = "@scope"
HOSTNAME_PREFIX_PROPERTY = "@hostname_prefix"
RESERVED_PROPERTIES = (SCOPE_PROPERTY, HOSTNAME_PREFIX_PROPERTY)

SCOPE_DEFAULT = "default"
SCOPE_DEDICATED = "dedicated"


@dataclass(frozen=True, slots=True)
class DefaultScope:
    def resource_name(self, owner: str, name: str) -> str:
        return f"{owner}-{name}"


@dataclass(frozen=True, slots=True)
class DedicatedScope:
    prefix: str

    def document_name(self, key: str) -> str:
        return f"{self.prefix}_dedicated_{key}"

    def resource_name(self, key: str, name: str) -> str:
        return f"{self.prefix}-{key}-{name}"


@dataclass(frozen=True, slots=True)
class GlobalScope:
    name: str

    def document_name(self) -> str:
        return f"{self.name}_global"

    def resource_name(self, name: str) -> str:
        return f"{self.name}-{name}"


Scope: TypeAlias = DefaultScope | DedicatedScope | GlobalScope


def classify_scope(value: Any) -> Scope:
    if value is None or value in ("", SCOPE_DEFAULT):
        return DefaultScope()
    if not isinstance(value, str):
        raise SpecError(f"Invalid {SCOPE_PROPERTY} value: {value!r}")
    if value == SCOPE_DEDICATED:
        return DedicatedScope(SCOPE_DEFAULT)
    if value.startswith(SCOPE_DEDICATED + "-") and len(value) > len(SCOPE_DEDICATED) + 1:
        return DedicatedScope(value[len(SCOPE_DEDICATED) + 1 :])
    return GlobalScope(value)


@dataclass(frozen=True, slots=True)
class AuxiliaryDeclaration:
    """One resource of a composite document, reserved keys already parsed.

    Attributes:
        resource_type: Resource type bucket
        name: Name as declared in the composite document
        scope: Parsed ``@scope``
        hostname_prefix: Raw ``@hostname_prefix`` value, if any
        properties: Remaining properties (a copy, reserved keys removed)
    """

    resource_type: str
    name: str
    scope: Scope
    hostname_prefix: Any
    properties: Properties


def parse_declaration(
    resource_type: str, name: str, properties: Properties
) -> AuxiliaryDeclaration:
    props = copy.deepcopy(properties)
    scope = classify_scope(props.pop(SCOPE_PROPERTY, None))
    hostname_prefix = props.pop(HOSTNAME_PREFIX_PROPERTY, None)
    return AuxiliaryDeclaration(resource_type, name, scope, hostname_prefix, props)


def auxiliary_declarations(document: ResourceDocument, vm_type: str) -> list[AuxiliaryDeclaration]:
    """Parse every non-VM resource of *document*, in type then name order."""
    resources = document.resource or {}
    return [
        parse_declaration(resource_type, name, properties)
        for resource_type in sorted(resources)
        if resource_type != vm_type
        for name, properties in sorted(resources[resource_type].items())
    ]


def resolve_attach_keys(
    declarations: list[AuxiliaryDeclaration],
    current_files: Mapping[str, ResourceDocument],
    logical_id: str | None = None,
) -> dict[str, str]:
    """Resolve one dedicated attach key per dedicated group prefix."""
    prefixes = sorted(
        {d.scope.prefix for d in declarations if isinstance(d.scope, DedicatedScope)}
    )
    return {p: dedicated_attach_key(current_files, p, logical_id) for p in prefixes}


def primary_attach_key(attach_keys: Mapping[str, str]) -> str:
    return attach_keys[min(attach_keys)] if attach_keys else ""


def decompose(
    document: ResourceDocument,
    instance_id: str,
    vm_properties: Properties,
    *,
    logical_id: str | None = None,
    current_files: Mapping[str, ResourceDocument] | None = None,
    attach_keys: Mapping[str, str] | None = None,
) -> Decomposition:
    """Split *document* into the VM's own document plus companion documents.

    *vm_properties* is the final property bag of the VM (tags, init and
    provider fixups already applied); the attach tag is merged into it when
    companions are produced. *attach_keys* maps dedicated group prefixes to
    slot keys; missing groups are resolved against *current_files*.
    """
    current_files = current_files or {}
    vm_type, _, _ = find_vm(document)
    declarations = auxiliary_declarations(document, vm_type)
    keys = dict(attach_keys or {})
    unresolved = [
        d
        for d in declarations
        if isinstance(d.scope, DedicatedScope) and d.scope.prefix not in keys
    ]
    keys.update(resolve_attach_keys(unresolved, current_files, logical_id))

    own = ResourceDocument()
    companions: dict[str, ResourceDocument] = {}
    for decl in declarations:
        scope = decl.scope
        if isinstance(scope, DedicatedScope):
            key = keys[scope.prefix]
            target = companions.setdefault(scope.document_name(key), ResourceDocument())
            target.add(decl.resource_type, scope.resource_name(key, decl.name), decl.properties)
        elif isinstance(scope, GlobalScope):
            target = companions.setdefault(scope.document_name(), ResourceDocument())
            target.add(decl.resource_type, scope.resource_name(decl.name), decl.properties)
        else:
            name = scope.resource_name(instance_id, decl.name)
            own.add(decl.resource_type, name, decl.properties)

    if companions:
        attach = ",".join(sorted(companions))
        merge_tags_into_properties(vm_type, vm_properties, {ATTACH_TAG: attach})
    own.add(vm_type, instance_id, vm_properties)

    file_map = {instance_id: own, **companions}
    rewritten = sorted(name for name in current_files if base_name(name) in companions)
    logger.debug(
        "Decomposed %s into %d document(s): %s",
        instance_id,
        len(file_map),
        ", ".join(sorted(file_map)),
    )
    return Decomposition(
        file_map=file_map,
        dedicated_attach_key=primary_attach_key(keys),
        current_files=rewritten,
    )
