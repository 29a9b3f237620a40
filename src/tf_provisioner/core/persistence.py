"""Reading and writing resource documents in a :class:`DocumentStore`.

Each document lives in ``<base>.tf.json`` once applied by terraform, or in
``<base>.tf.json.new`` while staged. This module always writes the staged
form and reads both.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tf_provisioner.core.document import ResourceDocument, find_vm
from tf_provisioner.errors import DocumentDecodeError, NotFoundError, SpecError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from tf_provisioner.core.document import Properties
    from tf_provisioner.core.store import DocumentStore

logger = logging.getLogger(__name__)

APPLIED_SUFFIX = ".tf.json"
STAGED_SUFFIX = ".tf.json.new"
DEDICATED_MARKER = "_dedicated_"
GLOBAL_SUFFIX = "_global"

FileMap = dict[str, ResourceDocument]
"""Base name -> document to write under that base name."""


def is_document_file(name: str) -> bool:
    return name.endswith((APPLIED_SUFFIX, STAGED_SUFFIX))


def base_name(name: str) -> str:
    """Strip the applied or staged suffix from a document file name."""
    for suffix in (STAGED_SUFFIX, APPLIED_SUFFIX):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def is_companion(base: str) -> bool:
    """Whether *base* names a dedicated or global document."""
    return DEDICATED_MARKER in base or base.endswith(GLOBAL_SUFFIX)


def decode_document(store: DocumentStore, name: str) -> ResourceDocument:
    try:
        return ResourceDocument.from_json(store.read(name))
    except SpecError as exc:
        raise DocumentDecodeError(name, str(exc)) from exc


def write_documents(
    store: DocumentStore,
    file_map: Mapping[str, ResourceDocument],
    files_to_delete: Iterable[str] = (),
) -> None:
    """Stage every document in *file_map*, then drop superseded files.

    Each document is written to ``<base>.tf.json.new``. Any file named in
    *files_to_delete* that was not just written is removed afterwards, so an
    applied copy never coexists with its newly staged replacement.
    """
    written: set[str] = set()
    for base in sorted(file_map):
        name = base + STAGED_SUFFIX
        store.write(name, file_map[base].to_json())
        written.add(name)
        logger.debug("Staged %s in %s", name, store.location)
    for name in files_to_delete:
        if name not in written:
            store.remove(name)
            logger.debug("Removed superseded %s from %s", name, store.location)


def list_current_files(store: DocumentStore) -> dict[str, ResourceDocument]:
    """Decode every document in *store*, keyed by file name (with suffix).

    A single undecodable file aborts the whole scan.
    """
    return {
        name: decode_document(store, name) for name in store.names() if is_document_file(name)
    }


def scan_vms(store: DocumentStore) -> dict[str, dict[str, Properties]]:
    """Group the VM resources of every instance document by VM type.

    Raises:
        DocumentDecodeError: A document could not be decoded.
        NotFoundError: An instance document holds no VM resource.
    """
    vms: dict[str, dict[str, Properties]] = {}
    for name in store.names():
        if not is_document_file(name) or is_companion(base_name(name)):
            continue
        vm_type, vm_name, properties = find_vm(decode_document(store, name))
        vms.setdefault(vm_type, {})[vm_name] = properties
    return vms


def find_instance_file(store: DocumentStore, instance_id: str) -> tuple[ResourceDocument, str]:
    """Return the document of *instance_id* and the file name it is stored in.

    The applied file is preferred over the staged one.
    """
    for name in (instance_id + APPLIED_SUFFIX, instance_id + STAGED_SUFFIX):
        if store.exists(name):
            return decode_document(store, name), name
    raise NotFoundError(instance_id)
