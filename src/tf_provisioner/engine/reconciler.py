"""Instance lifecycle: provision, destroy, label, describe and import."""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from tf_provisioner.core.document import ResourceDocument, find_vm, validate_vm_count, vm_types
from tf_provisioner.core.persistence import (
    APPLIED_SUFFIX,
    STAGED_SUFFIX,
    find_instance_file,
    list_current_files,
    scan_vms,
    write_documents,
)
from tf_provisioner.core.tags import (
    TAGS_PROPERTY,
    find_logical_id,
    merge_property,
    merge_tags_into_properties,
    parse_tags,
)
from tf_provisioner.core.template import instance_variables, render
from tf_provisioner.engine.attachments import is_orphan, parse_attach_tag
from tf_provisioner.engine.collaborator import TerraformCollaborator
from tf_provisioner.engine.decompose import (
    HOSTNAME_PREFIX_PROPERTY,
    RESERVED_PROPERTIES,
    SCOPE_PROPERTY,
    auxiliary_declarations,
    decompose,
    primary_attach_key,
    resolve_attach_keys,
)
from tf_provisioner.engine.platform import (
    merge_init_script,
    platform_specific_updates,
    provision_tags,
)
from tf_provisioner.engine.types import DestroyContext, InstanceDescription, InstanceSpec
from tf_provisioner.errors import NotFoundError, SpecError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tf_provisioner.core.document import Properties
    from tf_provisioner.core.store import DocumentStore

logger = logging.getLogger(__name__)

HOSTNAME_PROPERTY = "hostname"
RESOURCE_ID_PROPERTY = "id"


def generate_instance_id() -> str:
    return f"instance-{uuid.uuid4().hex[:12]}"


def _parse_spec_document(properties: str | None) -> ResourceDocument:
    return ResourceDocument.from_json(properties or "{}")


class InstancePlugin:
    """Reconcile instance specs with the documents in a :class:`DocumentStore`.

    The store is the only shared state. There is no locking: concurrent
    provisions against the same dedicated group may race on slot allocation.
    """

    def __init__(
        self,
        store: DocumentStore,
        collaborator: TerraformCollaborator | None = None,
        *,
        id_factory: Callable[[], str] = generate_instance_id,
    ) -> None:
        self._store = store
        self._collaborator = collaborator or TerraformCollaborator()
        self._id_factory = id_factory

    @property
    def store(self) -> DocumentStore:
        return self._store

    def validate(self, properties: str | None) -> None:
        """Check that *properties* decodes and declares at most one VM type."""
        validate_vm_count(_parse_spec_document(properties))

    def provision(self, spec: InstanceSpec) -> str:
        """Write the documents for a new instance and return its ID.

        Every call creates a new instance; identical specs are never deduplicated.
        """
        document = _parse_spec_document(spec.properties)
        validate_vm_count(document)
        vm_type, _, _ = find_vm(document)

        instance_id = spec.instance_id or self._id_factory()
        logical_id = spec.logical_id or None
        current_files = list_current_files(self._store)
        attach_keys = resolve_attach_keys(
            auxiliary_declarations(document, vm_type), current_files, logical_id
        )
        variables = instance_variables(instance_id, logical_id, primary_attach_key(attach_keys))
        document = ResourceDocument(resource=render(document.resource, variables))

        _, _, declared = find_vm(document)
        vm_properties = copy.deepcopy(declared)
        vm_properties.pop(SCOPE_PROPERTY, None)
        merge_init_script(render(spec.init, variables), vm_type, vm_properties)
        platform_specific_updates(vm_type, instance_id, logical_id, vm_properties)
        merge_tags_into_properties(
            vm_type, vm_properties, provision_tags(spec.tags, instance_id, logical_id)
        )

        decomposition = decompose(
            document,
            instance_id,
            vm_properties,
            logical_id=logical_id,
            current_files=current_files,
            attach_keys=attach_keys,
        )
        write_documents(self._store, decomposition.file_map, decomposition.current_files)
        logger.info(
            "Provisioned %s (%s) with %d document(s)",
            instance_id,
            vm_type,
            len(decomposition.file_map),
        )
        return instance_id

    def destroy(
        self, instance_id: str, context: DestroyContext = DestroyContext.TERMINATION
    ) -> None:
        """Remove an instance's document, and on termination its orphaned companions.

        Raises:
            NotFoundError: No document exists for *instance_id*.
        """
        document, file_name = find_instance_file(self._store, instance_id)
        companions = parse_attach_tag(document) if context is DestroyContext.TERMINATION else []
        for name in (instance_id + APPLIED_SUFFIX, instance_id + STAGED_SUFFIX):
            self._store.remove(name)
        logger.debug("Removed %s", file_name)

        if companions:
            # Rescan so that references written since the lookup above are seen.
            current_files = list_current_files(self._store)
            for companion in companions:
                if not is_orphan(current_files, companion):
                    logger.debug("Keeping %s: still referenced", companion)
                    continue
                for name in (companion + APPLIED_SUFFIX, companion + STAGED_SUFFIX):
                    self._store.remove(name)
                logger.debug("Removed orphaned %s", companion)
        logger.info("Destroyed %s (%s)", instance_id, context.value)

    def label(self, instance_id: str, labels: Mapping[str, str] | None) -> None:
        """Merge *labels* into the instance's tags, keeping its file suffix."""
        document, file_name = find_instance_file(self._store, instance_id)
        vm_type, _, properties = find_vm(document)
        if not properties:
            raise NotFoundError(instance_id)
        merge_tags_into_properties(vm_type, properties, labels or {})
        self._store.write(file_name, document.to_json())
        logger.info("Labelled %s", instance_id)

    def describe_instances(
        self, tags: Mapping[str, str] | None = None, properties: bool = False
    ) -> list[InstanceDescription]:
        """Return every instance whose tags contain all of *tags*, sorted by ID.

        Matching is exact and case-sensitive on keys and values.
        """
        wanted = dict(tags or {})
        results: list[InstanceDescription] = []
        for vm_type, named in scan_vms(self._store).items():
            for name, vm_properties in named.items():
                vm_tags = parse_tags(vm_type, vm_properties)
                if any(vm_tags.get(k) != v for k, v in wanted.items()):
                    continue
                results.append(
                    InstanceDescription(
                        id=name,
                        tags=vm_tags,
                        logical_id=find_logical_id(vm_tags),
                        properties=copy.deepcopy(vm_properties) if properties else None,
                    )
                )
        results.sort(key=lambda d: d.id)
        logger.debug("Described %d instance(s)", len(results))
        return results

    def import_resource(self, resource_id: str, spec: InstanceSpec) -> str:
        """Adopt the live resource *resource_id* as an instance and return its ID.

        If terraform already manages a resource with that ID, its name is
        returned and nothing is written. Otherwise the resource is imported,
        its live properties are merged over the declared ones and the result
        is staged. A failed import or show is cleaned up before re-raising.
        """
        document = _parse_spec_document(spec.properties)
        resources = document.resource or {}
        if any(not resources[t] for t in vm_types(document)):
            raise SpecError("Missing resource properties")
        vm_type, _, declared = find_vm(document)

        directory = self._store.location
        for name, existing in self._collaborator.list_resources(directory, vm_type).items():
            if str(existing.get(RESOURCE_ID_PROPERTY)) == resource_id:
                logger.info("Resource %s already imported as %s", resource_id, name)
                return name

        instance_id = spec.instance_id or self._id_factory()
        placeholder = ResourceDocument.from_resources({vm_type: {instance_id: {}}})
        write_documents(self._store, {instance_id: placeholder})
        try:
            self._collaborator.import_resource(vm_type, instance_id, resource_id)
            live = self._collaborator.show_resource(directory, f"{vm_type}.{instance_id}")
        except Exception:
            try:
                self._collaborator.clean_import(vm_type, instance_id)
            finally:
                self._store.remove(instance_id + STAGED_SUFFIX)
            raise

        vm_properties = _merge_imported(declared, live, spec.tags, vm_type)
        imported = ResourceDocument.from_resources({vm_type: {instance_id: vm_properties}})
        write_documents(self._store, {instance_id: imported})
        logger.info("Imported %s as %s", resource_id, instance_id)
        return instance_id


def _merge_imported(
    declared: Properties, live: Properties, tags: Mapping[str, str], vm_type: str
) -> Properties:
    """Live values win for declared keys; live-only keys are dropped."""
    spec_props = {k: v for k, v in declared.items() if k not in RESERVED_PROPERTIES}
    keys = set(spec_props)
    if declared.get(HOSTNAME_PREFIX_PROPERTY):
        keys.add(HOSTNAME_PROPERTY)
    keys.discard(TAGS_PROPERTY)

    result: Properties = {}
    for key in sorted(keys):
        if key in live:
            result[key] = copy.deepcopy(live[key])
        elif key in spec_props:
            result[key] = copy.deepcopy(spec_props[key])
    merge_property(spec_props, result, TAGS_PROPERTY)
    merge_property(live, result, TAGS_PROPERTY)
    if tags:
        merge_tags_into_properties(vm_type, result, tags)
    return result
