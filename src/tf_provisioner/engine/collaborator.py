"""Interface to the external terraform tool used by resource import."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tf_provisioner.core.document import Properties


class TerraformCollaborator:
    """Operations import needs from terraform itself.

    Running the terraform binary is left to subclasses; every method here
    raises ``NotImplementedError``. Errors raised by an implementation are
    propagated to the caller unchanged after import cleanup.
    """

    def list_resources(self, directory: str, vm_type: str) -> dict[str, Properties]:
        """Return the resources of *vm_type* terraform already manages, by name."""
        raise NotImplementedError

    def import_resource(self, vm_type: str, file_name: str, resource_id: str) -> None:
        """Import the live resource *resource_id* as ``<vm_type>.<file_name>``."""
        raise NotImplementedError

    def show_resource(self, directory: str, address: str) -> Properties:
        """Return the live properties of the resource at ``<type>.<name>``."""
        raise NotImplementedError

    def clean_import(self, vm_type: str, name: str) -> None:
        """Undo a partial import of ``<vm_type>.<name>``."""
        raise NotImplementedError
