"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class InboundKind(str, Enum):
    """Closed set of reply variants produced by the inbound pipeline."""

    QUIET = "quiet"
    FAQ = "faq"
    BOOKING = "booking"
    PAYMENT = "payment"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"


@dataclass(slots=True)
class ParsedDocument:
    """Plain text extracted from a tenant's website before chunking."""

    doc_id: str
    text: str
    source: str


@dataclass(slots=True)
class Tenant:
    id: str
    name: str
    email: str
    website: str
    created_at: datetime


@dataclass(slots=True, frozen=True)
class ChunkDraft:
    """A chunk produced by ingestion, not yet assigned an id."""

    text: str
    term_frequencies: dict[str, int]


@dataclass(slots=True, frozen=True)
class KnowledgeChunk:
    """A stored knowledge-base passage owned by exactly one tenant.

    `term_frequencies` is `None` only for chunks written by something other
    than the ingest pipeline; the ranker recomputes it from `text` then.
    """

    id: str
    tenant_id: str
    text: str
    term_frequencies: dict[str, int] | None = None


@dataclass(slots=True)
class RankedChunk:
    """A retrieval result; never persisted."""

    id: str
    text: str
    score: float


@dataclass(slots=True)
class BookingDraft:
    tenant_id: str
    service: str
    start_time: datetime
    customer_phone: str
    source: str = "wa"


@dataclass(slots=True)
class Booking:
    id: str
    tenant_id: str
    service: str
    start_time: datetime
    customer_phone: str
    source: str
    created_at: datetime


@dataclass(slots=True)
class InvoiceDraft:
    tenant_id: str
    amount: int
    currency: str
    customer_phone: str
    status: InvoiceStatus = InvoiceStatus.PENDING
    paylink: str = ""


@dataclass(slots=True)
class Invoice:
    id: str
    tenant_id: str
    amount: int
    currency: str
    status: InvoiceStatus
    paylink: str
    customer_phone: str
    created_at: datetime


@dataclass(slots=True)
class InboundMessage:
    """A validated message arriving on the simulated messaging channel."""

    tenant_id: str
    sender: str
    text: str


@dataclass(slots=True)
class InboundReply:
    kind: InboundKind
    reply: str
    chunk_id: str | None = None
    booking_id: str | None = None
    start: str | None = None
    invoice_id: str | None = None
    paylink: str | None = None
    failed: bool = False

    def as_payload(self) -> dict[str, str]:
        """Serialize for the HTTP boundary, omitting unset optional fields."""
        payload = {"kind": self.kind.value, "reply": self.reply}
        for name in ("chunk_id", "booking_id", "start", "invoice_id", "paylink"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload
