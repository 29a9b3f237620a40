"""Engine types (instance specs, descriptions, decomposition results)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from tf_provisioner.core.document import ResourceDocument


class DestroyContext(str, Enum):
    """Why an instance is being destroyed.

    ``TERMINATION`` removes the instance for good, so its companion documents
    go too once nothing else references them. ``ROLLING_UPDATE`` replaces the
    instance; companion documents are kept for the replacement to reattach.
    """

    TERMINATION = "termination"
    ROLLING_UPDATE = "rolling-update"


class Attachment(BaseModel):
    id: str
    type: str


class InstanceSpec(BaseModel):
    """What to provision.

    Attributes:
        properties: Resource document as JSON text
        tags: Caller tags merged into the VM's tags
        init: Init script appended to the VM's user data
        attachments: Passed through untouched
        logical_id: Stable identity of the instance within its group
        instance_id: Use this ID instead of generating one
    """

    properties: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    init: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    logical_id: str | None = None
    instance_id: str | None = None

    @field_validator("properties", mode="before")
    @classmethod
    def _properties_to_json(cls, v: Any) -> Any:
        # Spec files may inline the document as a mapping.
        if isinstance(v, dict):
            return json.dumps(v)
        return v


class InstanceDescription(BaseModel):
    id: str
    tags: dict[str, str] = Field(default_factory=dict)
    logical_id: str | None = None
    properties: dict[str, Any] | None = None


@dataclass
class Decomposition:
    """Output of splitting one composite document.

    Attributes:
        file_map: Base name -> document to stage under that name
        dedicated_attach_key: Key of the first dedicated group, ``""`` if none
        current_files: On-disk file names of companion documents being rewritten
    """

    file_map: dict[str, ResourceDocument] = field(default_factory=dict)
    dedicated_attach_key: str = ""
    current_files: list[str] = field(default_factory=list)
