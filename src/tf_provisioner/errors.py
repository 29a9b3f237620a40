"""Provisioner error types."""

from __future__ import annotations


class ProvisionerError(Exception):
    """Base exception for provisioner errors."""


class SpecError(ProvisionerError):
    """Raised when an instance spec or resource document is malformed.

    Messages are stable so that callers can match on them.
    """


class NotFoundError(ProvisionerError):
    """Raised when an instance or VM resource cannot be located."""

    def __init__(self, target: str | None = None) -> None:
        msg = "not found" if target is None else f"not found:{target}"
        super().__init__(msg)
        self.target = target


class DocumentDecodeError(ProvisionerError):
    """Raised when a persisted document cannot be decoded."""

    def __init__(self, file_name: str, message: str) -> None:
        super().__init__(f"Failed to decode {file_name}: {message}")
        self.file_name = file_name


class UnknownVMTypeError(ProvisionerError):
    """Raised when a resource type has no provider traits."""

    def __init__(self, vm_type: str) -> None:
        super().__init__(f"Unknown VM resource type: {vm_type}")
        self.vm_type = vm_type


class TemplateError(ProvisionerError):
    """Raised when an instance variable placeholder cannot be resolved."""
