"""Infrastructure-as-code resource documents."""

from __future__ import annotations

import json
from typing import Any, TypeAlias

from pydantic import BaseModel, ValidationError

from tf_provisioner.core.providers import is_vm_type
from tf_provisioner.errors import NotFoundError, SpecError

Properties: TypeAlias = dict[str, Any]
ResourceMap: TypeAlias = dict[str, dict[str, Properties]]


class ResourceDocument(BaseModel):
    """A ``{"resource": {type: {name: properties}}}`` document.

    Resource names are unique within a type bucket only. Each document is
    persisted in exactly one file.
    """

    resource: ResourceMap | None = None

    @classmethod
    def from_json(cls, text: str | bytes) -> ResourceDocument:
        try:
            return cls.model_validate_json(text)
        except ValidationError as exc:
            raise SpecError(str(exc)) from exc

    @classmethod
    def from_resources(cls, resources: ResourceMap) -> ResourceDocument:
        return cls(resource=resources)

    def to_json(self) -> str:
        # Sorted keys keep rewrites of identical content byte-identical.
        return json.dumps({"resource": self.resource or {}}, indent=2, sort_keys=True) + "\n"

    def add(self, resource_type: str, name: str, properties: Properties) -> None:
        if self.resource is None:
            self.resource = {}
        self.resource.setdefault(resource_type, {})[name] = properties


def vm_types(document: ResourceDocument) -> list[str]:
    """Return every VM resource type present in *document*, sorted."""
    return sorted(t for t in (document.resource or {}) if is_vm_type(t))


def validate_vm_count(document: ResourceDocument) -> None:
    """Reject documents declaring more than one VM type (zero is allowed)."""
    found = vm_types(document)
    if len(found) > 1:
        raise SpecError(f"zero or 1 vm instance per request: {', '.join(found)}")


def find_vm(document: ResourceDocument) -> tuple[str, str, Properties]:
    """Locate the VM resource in *document*.

    Returns ``(vm_type, vm_name, properties)``; the properties are the
    document's own dict, not a copy.

    Raises:
        SpecError: No ``resource`` section, or a VM type with no named entry.
        NotFoundError: No VM resource type present.
    """
    if document.resource is None:
        raise SpecError("no resource section")
    for resource_type in vm_types(document):
        named = document.resource[resource_type]
        if not named:
            raise SpecError("no-vm-instance-in-spec")
        name = sorted(named)[0]
        return resource_type, name, named[name]
    raise NotFoundError
