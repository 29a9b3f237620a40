"""Decomposition, slot allocation and lifecycle reconciliation."""

from tf_provisioner.engine.collaborator import TerraformCollaborator
from tf_provisioner.engine.reconciler import InstancePlugin, generate_instance_id
from tf_provisioner.engine.types import (
    Attachment,
    Decomposition,
    DestroyContext,
    InstanceDescription,
    InstanceSpec,
)

__all__ = [
    "Attachment",
    "Decomposition",
    "DestroyContext",
    "InstanceDescription",
    "InstancePlugin",
    "InstanceSpec",
    "TerraformCollaborator",
    "generate_instance_id",
]
