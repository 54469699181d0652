"""Inbound message orchestration: quiet hours -> intent -> branch handler.

Flow:
  1. Quiet-hours gate. When quiet, reply with the advisory and stop; nothing
     is classified or written.
  2. Classify the text into FAQ / booking / payment.
  3. Dispatch to exactly one handler:
     - FAQ: rank the tenant's chunks and reply with the best snippet.
     - Booking: parse the start time and service, write a booking.
     - Payment: write a pending invoice, then attach its pay link.

Storage failures become a generic apology reply; they are logged, never
retried. A booking or payment for an unknown tenant writes nothing and gets
a not-registered reply.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import assert_never

import structlog

from bizportal.config import PaymentConfig, QuietHoursConfig, RetrievalConfig
from bizportal.errors import StorageError, TenantNotFoundError
from bizportal.inbound.classifier import classify_text
from bizportal.inbound.quiet import (
    build_quiet_hours_message,
    is_within_quiet_hours,
    resolve_timezone,
)
from bizportal.inbound.service import extract_service
from bizportal.inbound.when import parse_when
from bizportal.obs.tracing import Timer, TraceStore
from bizportal.retrieval.ranker import rank_chunks_by_tfidf
from bizportal.retrieval.snippet import extract_snippet
from bizportal.storage.store import PortalStore
from bizportal.types import (
    BookingDraft,
    InboundKind,
    InboundMessage,
    InboundReply,
    InvoiceDraft,
    InvoiceStatus,
)

logger = structlog.get_logger(__name__)

NO_KNOWLEDGE_REPLY = (
    "I couldn't find any knowledge for this tenant yet. Try ingesting the website first."
)
NO_MATCH_REPLY = "Sorry, I couldn't find a relevant passage for that question right now."
FAILURE_REPLY = "Sorry, something went wrong on our side. Please try again shortly."
UNKNOWN_TENANT_REPLY = "Sorry, this business is not registered with us."
PAYMENT_REPLY = "You can pay securely here: {paylink}"
BOOKING_REPLY = "Booked {service} at {start}"
BOOKING_SOURCE = "wa"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InboundOrchestrator:
    """Handles one inbound channel message end to end.

    All configuration is passed in at construction; the orchestrator never
    reads the environment. `clock` returns the current time and exists so
    tests can pin it.
    """

    def __init__(
        self,
        store: PortalStore,
        *,
        quiet_hours: QuietHoursConfig | None = None,
        payments: PaymentConfig | None = None,
        retrieval: RetrievalConfig | None = None,
        timezone_name: str = "Asia/Dubai",
        clock: Callable[[], datetime] | None = None,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.store = store
        self.quiet_hours = quiet_hours or QuietHoursConfig()
        self.payments = payments or PaymentConfig()
        self.retrieval = retrieval or RetrievalConfig()
        self.timezone = resolve_timezone(timezone_name)
        self.clock = clock or _utcnow
        self.trace_store = trace_store

    def handle(self, message: InboundMessage) -> InboundReply:
        with Timer() as timer:
            now = self.clock()
            if is_within_quiet_hours(now, self.quiet_hours):
                kind = InboundKind.QUIET
            else:
                kind = classify_text(message.text)

            try:
                reply = self._dispatch(kind, message, now)
            except TenantNotFoundError:
                logger.warning(
                    "inbound.tenant_not_found", tenant_id=message.tenant_id, kind=kind.value
                )
                reply = InboundReply(kind=kind, reply=UNKNOWN_TENANT_REPLY, failed=True)
            except StorageError:
                logger.exception(
                    "inbound.storage_failed", tenant_id=message.tenant_id, kind=kind.value
                )
                reply = InboundReply(kind=kind, reply=FAILURE_REPLY, failed=True)

        logger.info(
            "inbound.handled",
            tenant_id=message.tenant_id,
            kind=kind.value,
            failed=reply.failed,
            latency_ms=round(timer.elapsed_ms, 2),
        )
        if self.trace_store is not None:
            self.trace_store.create_record(
                tenant_id=message.tenant_id,
                kind=kind.value,
                chunk_id=reply.chunk_id,
                latency_ms=timer.elapsed_ms,
                failed=reply.failed,
            )
        return reply

    def _dispatch(self, kind: InboundKind, message: InboundMessage, now: datetime) -> InboundReply:
        match kind:
            case InboundKind.QUIET:
                return self._handle_quiet()
            case InboundKind.FAQ:
                return self._handle_faq(message)
            case InboundKind.BOOKING:
                return self._handle_booking(message, now)
            case InboundKind.PAYMENT:
                return self._handle_payment(message)
            case _:
                assert_never(kind)

    def _handle_quiet(self) -> InboundReply:
        return InboundReply(
            kind=InboundKind.QUIET, reply=build_quiet_hours_message(self.quiet_hours)
        )

    def _handle_faq(self, message: InboundMessage) -> InboundReply:
        chunks = self.store.list_chunks(message.tenant_id)
        if not chunks:
            return InboundReply(kind=InboundKind.FAQ, reply=NO_KNOWLEDGE_REPLY)

        ranked = rank_chunks_by_tfidf(chunks, message.text, top_k=1)
        if not ranked:
            return InboundReply(kind=InboundKind.FAQ, reply=NO_MATCH_REPLY)

        best = ranked[0]
        snippet = extract_snippet(best.text, message.text, self.retrieval.snippet_max_len)
        return InboundReply(kind=InboundKind.FAQ, reply=snippet, chunk_id=best.id)

    def _handle_booking(self, message: InboundMessage, now: datetime) -> InboundReply:
        local_now = now.astimezone(self.timezone) if now.tzinfo else now
        start = parse_when(message.text, local_now)
        service = extract_service(message.text)

        booking = self.store.create_booking(
            BookingDraft(
                tenant_id=message.tenant_id,
                service=service,
                start_time=start,
                customer_phone=message.sender,
                source=BOOKING_SOURCE,
            )
        )
        logger.info(
            "inbound.booking_created",
            tenant_id=message.tenant_id,
            booking_id=booking.id,
            service=booking.service,
        )
        return InboundReply(
            kind=InboundKind.BOOKING,
            reply=BOOKING_REPLY.format(
                service=booking.service,
                start=booking.start_time.strftime("%Y-%m-%d %H:%M"),
            ),
            booking_id=booking.id,
            start=booking.start_time.isoformat(),
        )

    def _handle_payment(self, message: InboundMessage) -> InboundReply:
        created = self.store.create_invoice(
            InvoiceDraft(
                tenant_id=message.tenant_id,
                amount=self.payments.default_amount,
                currency=self.payments.currency,
                customer_phone=message.sender,
                status=InvoiceStatus.PENDING,
                paylink="",
            )
        )
        paylink = f"{self.payments.base_url}/pay/{created.id}"
        invoice = self.store.update_invoice_paylink(created.id, paylink)
        logger.info(
            "inbound.invoice_created",
            tenant_id=message.tenant_id,
            invoice_id=invoice.id,
            amount=invoice.amount,
            currency=invoice.currency,
        )
        return InboundReply(
            kind=InboundKind.PAYMENT,
            reply=PAYMENT_REPLY.format(paylink=invoice.paylink),
            invoice_id=invoice.id,
            paylink=invoice.paylink,
        )
