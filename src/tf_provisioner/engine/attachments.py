"""Dedicated slot allocation and orphan detection.

A VM document lists its companion documents (dedicated and global) in the
attach tag. A companion no VM document references any more is an orphan:
safe to delete on termination, and free for reuse by the next instance of
the same dedicated group.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tf_provisioner.core.document import find_vm, vm_types
from tf_provisioner.core.persistence import DEDICATED_MARKER, base_name, is_companion
from tf_provisioner.core.tags import ATTACH_TAG, parse_tags

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from tf_provisioner.core.document import ResourceDocument

logger = logging.getLogger(__name__)


def _split(value: str) -> list[str]:
    return [v for v in value.split(",") if v]


def parse_attach_tag(document: ResourceDocument) -> list[str]:
    """Return the companion base names referenced by the VM in *document*.

    Raises:
        NotFoundError: *document* holds no VM resource.
    """
    vm_type, _, properties = find_vm(document)
    return _split(parse_tags(vm_type, properties).get(ATTACH_TAG, ""))


def _references(document: ResourceDocument) -> Iterator[str]:
    # Every VM in the document, so documents without one contribute nothing.
    resources = document.resource or {}
    for vm_type in vm_types(document):
        for properties in resources[vm_type].values():
            yield from _split(parse_tags(vm_type, properties).get(ATTACH_TAG, ""))


def _vm_documents(current_files: Mapping[str, ResourceDocument]) -> Iterator[ResourceDocument]:
    for name, document in current_files.items():
        if is_companion(base_name(name)):
            continue
        yield document


def find_dedicated_attachment_keys(
    current_files: Mapping[str, ResourceDocument], prefix: str
) -> tuple[list[str], list[str]]:
    """Return ``(all_keys, orphan_keys)`` of the ``<prefix>_dedicated_*`` group.

    *all_keys* holds every key with a document on disk or referenced by a VM;
    *orphan_keys* holds the on-disk keys no VM references. Both are sorted.
    """
    marker = f"{prefix}{DEDICATED_MARKER}"
    on_disk = {
        base[len(marker) :]
        for base in map(base_name, current_files)
        if base.startswith(marker) and len(base) > len(marker)
    }
    referenced = {
        ref[len(marker) :]
        for document in _vm_documents(current_files)
        for ref in _references(document)
        if ref.startswith(marker) and len(ref) > len(marker)
    }
    return sorted(on_disk | referenced), sorted(on_disk - referenced)


def lowest_orphan_index(candidates: Iterable[str]) -> str | None:
    """Pick the slot key to reuse among *candidates*.

    Keys that are non-negative integers win, lowest value first. Only when no
    candidate is numeric does the lexicographically lowest string win.
    """
    keys = list(candidates)
    numeric = [k for k in keys if k.isascii() and k.isdigit()]
    if numeric:
        return min(numeric, key=int)
    return min(keys) if keys else None


def next_free_slot(used: Iterable[str]) -> str:
    """Return the smallest integer key >= 1 not in *used*."""
    taken = set(used)
    slot = 1
    while str(slot) in taken:
        slot += 1
    return str(slot)


def dedicated_attach_key(
    current_files: Mapping[str, ResourceDocument], prefix: str, logical_id: str | None = None
) -> str:
    """Resolve the key naming this instance's ``<prefix>`` dedicated document.

    The logical ID when given, else the lowest orphaned slot, else a fresh one.
    """
    if logical_id:
        return logical_id
    all_keys, orphan_keys = find_dedicated_attachment_keys(current_files, prefix)
    orphan = lowest_orphan_index(orphan_keys)
    if orphan is not None:
        logger.debug("Reusing orphaned %s dedicated slot %s", prefix, orphan)
        return orphan
    slot = next_free_slot(all_keys)
    logger.debug("Allocated new %s dedicated slot %s", prefix, slot)
    return slot


def is_orphan(current_files: Mapping[str, ResourceDocument], companion: str) -> bool:
    """Whether no VM document references *companion*."""
    return all(companion not in _references(doc) for doc in _vm_documents(current_files))
