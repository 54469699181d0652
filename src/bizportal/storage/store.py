"""Storage contracts consumed by the core and an in-memory adapter."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Protocol

from bizportal.errors import (
    DuplicateTenantError,
    InvalidInvoiceTransitionError,
    InvoiceNotFoundError,
    TenantNotFoundError,
)
from bizportal.types import (
    Booking,
    BookingDraft,
    ChunkDraft,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    KnowledgeChunk,
    Tenant,
)

# Allowed status moves; `paid` is terminal.
INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.PENDING: frozenset({InvoiceStatus.SENT, InvoiceStatus.PAID}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}


class ChunkStore(Protocol):
    """Knowledge chunks, always scoped to one tenant."""

    def list_chunks(self, tenant_id: str) -> list[KnowledgeChunk]:
        """Return the tenant's chunks in insertion order."""

    def replace_chunks(self, tenant_id: str, drafts: Sequence[ChunkDraft]) -> int:
        """Atomically swap the tenant's chunk set; return the new count.

        Raises `TenantNotFoundError` when the tenant does not exist.
        """


class BookingStore(Protocol):
    def create_booking(self, draft: BookingDraft) -> Booking:
        """Persist a new booking; the owning tenant must exist."""

    def list_bookings(self, tenant_id: str) -> list[Booking]:
        """Return the tenant's bookings, newest first."""


class InvoiceStore(Protocol):
    def create_invoice(self, draft: InvoiceDraft) -> Invoice:
        """Persist a new invoice; the owning tenant must exist."""

    def update_invoice_paylink(self, invoice_id: str, paylink: str) -> Invoice:
        """Set the pay link of an existing invoice."""

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        """Return an invoice or None."""

    def update_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        """Move an invoice along `INVOICE_TRANSITIONS`."""

    def list_invoices(self, tenant_id: str) -> list[Invoice]:
        """Return the tenant's invoices, newest first."""


class TenantDirectory(Protocol):
    def find_tenant(self, tenant_id: str) -> Tenant | None:
        """Return a tenant or None."""

    def create_tenant(self, name: str, email: str, website: str) -> Tenant:
        """Create a tenant; e-mail addresses are unique."""

    def delete_tenant(self, tenant_id: str) -> None:
        """Remove a tenant together with everything it owns."""


class PortalStore(ChunkStore, BookingStore, InvoiceStore, TenantDirectory, Protocol):
    """Everything the portal core needs from persistence."""


def check_invoice_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
    if target not in INVOICE_TRANSITIONS[current]:
        raise InvalidInvoiceTransitionError(current.value, target.value)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryPortalStore:
    """Dict-backed store used for tests and local prototyping.

    A single lock guards every operation, so a reader never observes a
    half-replaced chunk set.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tenants: dict[str, Tenant] = {}
        self._chunks: dict[str, list[KnowledgeChunk]] = {}
        self._bookings: dict[str, Booking] = {}
        self._invoices: dict[str, Invoice] = {}

    # Tenants

    def find_tenant(self, tenant_id: str) -> Tenant | None:
        with self._lock:
            return self._tenants.get(tenant_id)

    def create_tenant(self, name: str, email: str, website: str) -> Tenant:
        with self._lock:
            if any(t.email == email for t in self._tenants.values()):
                raise DuplicateTenantError("email")
            tenant = Tenant(
                id=new_id(), name=name, email=email, website=website, created_at=utcnow()
            )
            self._tenants[tenant.id] = tenant
            return tenant

    def delete_tenant(self, tenant_id: str) -> None:
        with self._lock:
            if self._tenants.pop(tenant_id, None) is None:
                raise TenantNotFoundError(tenant_id)
            self._chunks.pop(tenant_id, None)
            self._bookings = {
                k: b for k, b in self._bookings.items() if b.tenant_id != tenant_id
            }
            self._invoices = {
                k: i for k, i in self._invoices.items() if i.tenant_id != tenant_id
            }

    # Chunks

    def list_chunks(self, tenant_id: str) -> list[KnowledgeChunk]:
        with self._lock:
            return list(self._chunks.get(tenant_id, []))

    def replace_chunks(self, tenant_id: str, drafts: Sequence[ChunkDraft]) -> int:
        generation = [
            KnowledgeChunk(
                id=new_id(),
                tenant_id=tenant_id,
                text=draft.text,
                term_frequencies=dict(draft.term_frequencies),
            )
            for draft in drafts
        ]
        with self._lock:
            self._require_tenant(tenant_id)
            self._chunks[tenant_id] = generation
        return len(generation)

    # Bookings

    def create_booking(self, draft: BookingDraft) -> Booking:
        booking = Booking(
            id=new_id(),
            tenant_id=draft.tenant_id,
            service=draft.service,
            start_time=draft.start_time,
            customer_phone=draft.customer_phone,
            source=draft.source,
            created_at=utcnow(),
        )
        with self._lock:
            self._require_tenant(draft.tenant_id)
            self._bookings[booking.id] = booking
        return booking

    def list_bookings(self, tenant_id: str) -> list[Booking]:
        with self._lock:
            items = [b for b in self._bookings.values() if b.tenant_id == tenant_id]
        return list(reversed(items))

    # Invoices

    def create_invoice(self, draft: InvoiceDraft) -> Invoice:
        invoice = Invoice(
            id=new_id(),
            tenant_id=draft.tenant_id,
            amount=draft.amount,
            currency=draft.currency,
            status=draft.status,
            paylink=draft.paylink,
            customer_phone=draft.customer_phone,
            created_at=utcnow(),
        )
        with self._lock:
            self._require_tenant(draft.tenant_id)
            self._invoices[invoice.id] = invoice
        return replace(invoice)

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        with self._lock:
            invoice = self._invoices.get(invoice_id)
            return replace(invoice) if invoice else None

    def update_invoice_paylink(self, invoice_id: str, paylink: str) -> Invoice:
        with self._lock:
            invoice = self._require_invoice(invoice_id)
            invoice.paylink = paylink
            return replace(invoice)

    def update_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        with self._lock:
            invoice = self._require_invoice(invoice_id)
            check_invoice_transition(invoice.status, status)
            invoice.status = status
            return replace(invoice)

    def list_invoices(self, tenant_id: str) -> list[Invoice]:
        with self._lock:
            items = [replace(i) for i in self._invoices.values() if i.tenant_id == tenant_id]
        return list(reversed(items))

    def _require_tenant(self, tenant_id: str) -> None:
        if tenant_id not in self._tenants:
            raise TenantNotFoundError(tenant_id)

    def _require_invoice(self, invoice_id: str) -> Invoice:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice
