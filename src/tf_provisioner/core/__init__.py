"""Core document model, tag handling and persistence for tf-provisioner."""

from tf_provisioner.core.document import ResourceDocument, find_vm
from tf_provisioner.core.providers import ProviderTraits, VMType, traits_for
from tf_provisioner.core.store import DocumentStore, FileSystemStore, MemoryStore

__all__ = [
    "DocumentStore",
    "FileSystemStore",
    "MemoryStore",
    "ProviderTraits",
    "ResourceDocument",
    "VMType",
    "find_vm",
    "traits_for",
]
