"""Static per-provider traits for VM resource types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, TypeAlias

from tf_provisioner.errors import UnknownVMTypeError

TagShape: TypeAlias = Literal["list", "map"]


class VMType(str, Enum):
    AWS = "aws_instance"
    AZURE = "azurerm_virtual_machine"
    DIGITAL_OCEAN = "digitalocean_droplet"
    GOOGLE = "google_compute_instance"
    SOFTLAYER = "softlayer_virtual_guest"
    IBM_CLOUD = "ibm_compute_vm_instance"


@dataclass(frozen=True, slots=True)
class ProviderTraits:
    """Where a provider keeps tags, init data and hostname on its VM resource.

    Attributes:
        tags_property: Property holding the VM's tags
        tag_shape: ``"list"`` for ``"key:value"`` tokens, ``"map"`` for a mapping
        init_path: Property path of the user-init data (nested for Azure)
        base64_init: Whether init data must be base64-encoded before write
        hostname_property: Property derived from ``@hostname_prefix``, if any
        logical_id_private_ip: Whether ``private_ip`` may be bound to the logical ID
    """

    tags_property: str
    tag_shape: TagShape
    init_path: tuple[str, ...]
    base64_init: bool = False
    hostname_property: str | None = None
    logical_id_private_ip: bool = False


_TRAITS: dict[str, ProviderTraits] = {
    VMType.AWS.value: ProviderTraits(
        tags_property="tags",
        tag_shape="map",
        init_path=("user_data",),
        base64_init=True,
        logical_id_private_ip=True,
    ),
    VMType.DIGITAL_OCEAN.value: ProviderTraits(
        tags_property="tags",
        tag_shape="map",
        init_path=("user_data",),
        base64_init=True,
    ),
    VMType.AZURE.value: ProviderTraits(
        tags_property="tags",
        tag_shape="map",
        init_path=("os_profile", "custom_data"),
    ),
    VMType.GOOGLE.value: ProviderTraits(
        tags_property="tags",
        tag_shape="map",
        init_path=("metadata_startup_script",),
    ),
    VMType.SOFTLAYER.value: ProviderTraits(
        tags_property="tags",
        tag_shape="list",
        init_path=("user_metadata",),
        hostname_property="hostname",
    ),
    VMType.IBM_CLOUD.value: ProviderTraits(
        tags_property="tags",
        tag_shape="list",
        init_path=("user_metadata",),
        hostname_property="hostname",
    ),
}

VM_TYPES: tuple[str, ...] = tuple(t.value for t in VMType)


def is_vm_type(resource_type: str) -> bool:
    return resource_type in _TRAITS


def traits_for(vm_type: str) -> ProviderTraits:
    try:
        return _TRAITS[vm_type]
    except KeyError as e:
        raise UnknownVMTypeError(vm_type) from e
