from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from bizportal.config import PaymentConfig, QuietHoursConfig
from bizportal.errors import StorageError
from bizportal.inbound.orchestrator import (
    FAILURE_REPLY,
    NO_KNOWLEDGE_REPLY,
    NO_MATCH_REPLY,
    UNKNOWN_TENANT_REPLY,
    InboundOrchestrator,
)
from bizportal.ingest.pipeline import IngestPipeline
from bizportal.obs.tracing import TraceStore
from bizportal.storage.store import InMemoryPortalStore
from bizportal.types import BookingDraft, InboundKind, InboundMessage, InvoiceStatus

FIXTURE = Path(__file__).resolve().parents[2] / "fixtures" / "website.html"
DUBAI = ZoneInfo("Asia/Dubai")
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=DUBAI)
SENDER = "+971500000001"


class FailingBookingStore(InMemoryPortalStore):
    def create_booking(self, draft: BookingDraft):
        raise StorageError("database is locked")


def _setup(
    store: InMemoryPortalStore | None = None,
    *,
    quiet_hours: QuietHoursConfig | None = None,
    now: datetime = NOW,
    ingest: bool = True,
) -> tuple[InMemoryPortalStore, str, InboundOrchestrator, TraceStore]:
    store = store or InMemoryPortalStore()
    tenant_id = store.create_tenant("Serenity Spa", "hello@serenity.example", "https://serenity.example").id
    if ingest:
        IngestPipeline(store).ingest_path(tenant_id, FIXTURE)
    traces = TraceStore()
    orchestrator = InboundOrchestrator(
        store,
        quiet_hours=quiet_hours or QuietHoursConfig(enabled=False),
        payments=PaymentConfig(base_url="https://pay.example.com"),
        timezone_name="Asia/Dubai",
        clock=lambda: now,
        trace_store=traces,
    )
    return store, tenant_id, orchestrator, traces


def _message(tenant_id: str, text: str) -> InboundMessage:
    return InboundMessage(tenant_id=tenant_id, sender=SENDER, text=text)


def test_faq_replies_with_snippet_and_writes_nothing() -> None:
    store, tenant_id, orchestrator, traces = _setup()

    reply = orchestrator.handle(_message(tenant_id, "what time do you open"))

    assert reply.kind is InboundKind.FAQ
    assert "9am" in reply.reply
    assert len(reply.reply) <= 200
    assert reply.chunk_id in {chunk.id for chunk in store.list_chunks(tenant_id)}
    assert store.list_bookings(tenant_id) == []
    assert store.list_invoices(tenant_id) == []
    assert traces.list_recent()[0].chunk_id == reply.chunk_id


def test_booking_creates_row_in_business_timezone() -> None:
    store, tenant_id, orchestrator, _ = _setup()

    reply = orchestrator.handle(_message(tenant_id, "I'd like a 60m massage tomorrow after 3pm"))

    assert reply.kind is InboundKind.BOOKING
    [booking] = store.list_bookings(tenant_id)
    assert booking.id == reply.booking_id
    assert booking.service == "60m massage"
    assert booking.source == "wa"
    assert booking.customer_phone == SENDER
    assert booking.start_time == datetime(2026, 3, 11, 15, 30, tzinfo=DUBAI)
    assert reply.start == "2026-03-11T15:30:00+04:00"
    assert reply.reply == "Booked 60m massage at 2026-03-11 15:30"
    assert store.list_invoices(tenant_id) == []


def test_booking_day_is_resolved_in_local_time() -> None:
    # 22:00 UTC is already 02:00 the next day in Dubai.
    late_utc = datetime(2026, 3, 10, 22, 0, tzinfo=timezone.utc)
    store, tenant_id, orchestrator, _ = _setup(now=late_utc)

    orchestrator.handle(_message(tenant_id, "book a facial tomorrow at 2pm"))

    [booking] = store.list_bookings(tenant_id)
    assert booking.start_time == datetime(2026, 3, 12, 14, 0, tzinfo=DUBAI)
    assert booking.service == "facial"


def test_payment_creates_pending_invoice_with_paylink() -> None:
    store, tenant_id, orchestrator, _ = _setup()

    reply = orchestrator.handle(_message(tenant_id, "Can I pay a deposit now with my card"))

    assert reply.kind is InboundKind.PAYMENT
    invoice = store.get_invoice(reply.invoice_id)
    assert invoice is not None
    assert invoice.status is InvoiceStatus.PENDING
    assert invoice.amount == 100
    assert invoice.currency == "AED"
    assert invoice.paylink == f"https://pay.example.com/pay/{invoice.id}"
    assert reply.paylink == invoice.paylink
    assert reply.reply == f"You can pay securely here: {invoice.paylink}"
    assert store.list_bookings(tenant_id) == []


def test_quiet_hours_short_circuit_everything() -> None:
    quiet = QuietHoursConfig(enabled=True, start="20:00", end="08:00", timezone="Asia/Dubai")
    store, tenant_id, orchestrator, _ = _setup(
        quiet_hours=quiet, now=datetime(2026, 3, 10, 23, 0, tzinfo=DUBAI)
    )

    reply = orchestrator.handle(_message(tenant_id, "book a massage and pay by card"))

    assert reply.kind is InboundKind.QUIET
    assert "quiet hours (20:00-08:00 Asia/Dubai)" in reply.reply
    assert reply.as_payload() == {"kind": "quiet", "reply": reply.reply}
    assert store.list_bookings(tenant_id) == []
    assert store.list_invoices(tenant_id) == []


def test_faq_without_knowledge_base() -> None:
    _, tenant_id, orchestrator, _ = _setup(ingest=False)

    reply = orchestrator.handle(_message(tenant_id, "what time do you open"))

    assert reply.kind is InboundKind.FAQ
    assert reply.reply == NO_KNOWLEDGE_REPLY
    assert reply.chunk_id is None


def test_faq_without_matching_chunk() -> None:
    _, tenant_id, orchestrator, _ = _setup()

    reply = orchestrator.handle(_message(tenant_id, "do you sell gift vouchers"))

    assert reply.reply == NO_MATCH_REPLY
    assert reply.chunk_id is None


def test_storage_failure_becomes_apology() -> None:
    store, tenant_id, orchestrator, traces = _setup(FailingBookingStore())

    reply = orchestrator.handle(_message(tenant_id, "book a massage tomorrow"))

    assert reply.kind is InboundKind.BOOKING
    assert reply.failed is True
    assert reply.reply == FAILURE_REPLY
    assert reply.booking_id is None
    assert traces.summary()["failures"] == 1


def test_faq_opening_hours_end_to_end() -> None:
    store, tenant_id, orchestrator, _ = _setup(ingest=False)
    IngestPipeline(store).ingest_html(tenant_id, "<p>Opening hours: 10:00–20:00 daily.</p>")

    reply = orchestrator.handle(_message(tenant_id, "what are your opening hours"))

    assert reply.kind is InboundKind.FAQ
    assert "10:00" in reply.reply
    assert len(reply.reply) <= 200
    assert reply.chunk_id in {chunk.id for chunk in store.list_chunks(tenant_id)}


def test_mixed_booking_and_payment_text_creates_invoice_only() -> None:
    store, tenant_id, orchestrator, _ = _setup()

    reply = orchestrator.handle(_message(tenant_id, "book a massage and pay by card"))

    assert reply.kind is InboundKind.PAYMENT
    assert [invoice.id for invoice in store.list_invoices(tenant_id)] == [reply.invoice_id]
    assert store.list_bookings(tenant_id) == []


def test_booking_for_unknown_tenant_writes_nothing() -> None:
    store, _, orchestrator, traces = _setup(ingest=False)

    reply = orchestrator.handle(_message("ghost", "book a massage"))

    assert reply.kind is InboundKind.BOOKING
    assert reply.reply == UNKNOWN_TENANT_REPLY
    assert reply.failed is True
    assert reply.booking_id is None
    assert store.list_bookings("ghost") == []
    assert traces.summary()["failures"] == 1


def test_payment_for_unknown_tenant_writes_nothing() -> None:
    store, _, orchestrator, _ = _setup(ingest=False)

    reply = orchestrator.handle(_message("ghost", "Can I pay a deposit by card"))

    assert reply.kind is InboundKind.PAYMENT
    assert reply.reply == UNKNOWN_TENANT_REPLY
    assert reply.invoice_id is None
    assert reply.paylink is None
    assert store.list_invoices("ghost") == []
