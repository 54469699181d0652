"""Exception hierarchy shared by ingestion, storage and the API."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for all portal core errors."""


class TenantNotFoundError(PortalError):
    def __init__(self, tenant_id: str) -> None:
        super().__init__(f"Tenant not found: {tenant_id}")
        self.tenant_id = tenant_id


class DuplicateTenantError(PortalError):
    def __init__(self, field: str) -> None:
        super().__init__(f"Tenant with this {field} already exists")
        self.field = field


class SourceNotFoundError(PortalError):
    """The website HTML to ingest could not be read."""


class UnprocessableContentError(PortalError):
    """The website HTML produced no knowledge chunks."""


class InvoiceNotFoundError(PortalError):
    def __init__(self, invoice_id: str) -> None:
        super().__init__(f"Invoice not found: {invoice_id}")
        self.invoice_id = invoice_id


class InvalidInvoiceTransitionError(PortalError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move invoice from {current} to {target}")
        self.current = current
        self.target = target


class StorageError(PortalError):
    """A storage collaborator failed (unavailable, locked, corrupt...)."""
