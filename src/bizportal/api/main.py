"""FastAPI entrypoint for tenant, knowledge-base, channel and invoice endpoints."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, model_validator

from bizportal.config import PortalSettings, RetrievalConfig
from bizportal.errors import (
    DuplicateTenantError,
    InvalidInvoiceTransitionError,
    InvoiceNotFoundError,
    SourceNotFoundError,
    TenantNotFoundError,
    UnprocessableContentError,
)
from bizportal.inbound.orchestrator import InboundOrchestrator
from bizportal.ingest.chunker import SentencePackingChunker
from bizportal.ingest.pipeline import IngestPipeline
from bizportal.obs.logging import configure_logging
from bizportal.obs.tracing import TraceStore
from bizportal.retrieval.retriever import TfIdfRetriever
from bizportal.storage.sqlite import SqlitePortalStore
from bizportal.storage.store import InMemoryPortalStore, PortalStore
from bizportal.types import InboundMessage, Invoice, InvoiceStatus

logger = structlog.get_logger(__name__)


class TenantCreateRequest(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    website: HttpUrl

    @model_validator(mode="before")
    @classmethod
    def _strip_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            data = {**data, "name": data["name"].strip()}
        return data


class IngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tenant_id: str = Field(min_length=1, alias="tenantId")
    html: str | None = None


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tenant_id: str = Field(min_length=1, alias="tenantId")
    query: str = Field(min_length=1)
    top_k: int = Field(default=3, ge=1, le=20)


class InboundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tenant_id: str = Field(min_length=1, alias="tenantId")
    sender: str = Field(min_length=1, alias="from")
    text: str = Field(min_length=1)


def _invoice_payload(invoice: Invoice) -> dict[str, Any]:
    payload = asdict(invoice)
    payload["status"] = invoice.status.value
    payload["created_at"] = invoice.created_at.isoformat()
    return payload


def _build_store(settings: PortalSettings) -> PortalStore:
    if settings.database_path:
        return SqlitePortalStore(settings.database_path)
    return InMemoryPortalStore()


def create_app(
    settings: PortalSettings | None = None,
    *,
    store: PortalStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Build the app; settings are read once here and passed down."""

    settings = settings or PortalSettings()
    configure_logging(json_logs=settings.log_json)

    store = store or _build_store(settings)
    trace_store = TraceStore()
    retrieval_config = RetrievalConfig()
    ingest_pipeline = IngestPipeline(store, chunker=SentencePackingChunker(settings.chunking()))
    retriever = TfIdfRetriever(store, retrieval_config)

    orchestrator = InboundOrchestrator(
        store,
        quiet_hours=settings.quiet_hours(),
        payments=settings.payments(),
        retrieval=retrieval_config,
        timezone_name=settings.timezone,
        clock=clock,
        trace_store=trace_store,
    )

    app = FastAPI(title="Business Portal Core", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "store": type(store).__name__,
            "quiet_hours_enabled": settings.quiet_hours_enabled,
            "trace_count": len(trace_store.list_recent(limit=1000)),
        }

    @app.post("/tenants", status_code=201)
    def create_tenant(request: TenantCreateRequest) -> dict[str, Any]:
        try:
            tenant = store.create_tenant(
                name=request.name, email=str(request.email), website=str(request.website)
            )
        except DuplicateTenantError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        logger.info("tenant.created", tenant_id=tenant.id)
        return {"id": tenant.id}

    @app.delete("/tenants/{tenant_id}", status_code=204)
    def delete_tenant(tenant_id: str) -> None:
        try:
            store.delete_tenant(tenant_id)
        except TenantNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/kb/ingest")
    def ingest(request: IngestRequest) -> dict[str, Any]:
        try:
            if request.html is not None:
                result = ingest_pipeline.ingest_html(request.tenant_id, request.html)
            else:
                result = ingest_pipeline.ingest_path(request.tenant_id, settings.website_fixture)
        except (TenantNotFoundError, SourceNotFoundError) as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UnprocessableContentError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"chunks_created": result.chunk_count, "chunk_count": result.chunk_count}

    @app.post("/kb/search")
    def search(request: SearchRequest) -> dict[str, Any]:
        hits = retriever.search(request.tenant_id, request.query, top_k=request.top_k)
        return {"items": [asdict(hit) for hit in hits]}

    @app.post("/channels/wa/inbound")
    def inbound(request: InboundRequest) -> dict[str, Any]:
        reply = orchestrator.handle(
            InboundMessage(tenant_id=request.tenant_id, sender=request.sender, text=request.text)
        )
        return reply.as_payload()

    @app.get("/tenants/{tenant_id}/bookings")
    def list_bookings(tenant_id: str) -> dict[str, Any]:
        items = []
        for booking in store.list_bookings(tenant_id):
            payload = asdict(booking)
            payload["start_time"] = booking.start_time.isoformat()
            payload["created_at"] = booking.created_at.isoformat()
            items.append(payload)
        return {"items": items}

    @app.get("/tenants/{tenant_id}/invoices")
    def list_invoices(tenant_id: str) -> dict[str, Any]:
        return {"items": [_invoice_payload(i) for i in store.list_invoices(tenant_id)]}

    def _transition(invoice_id: str, status: InvoiceStatus) -> dict[str, Any]:
        try:
            invoice = store.update_invoice_status(invoice_id, status)
        except InvoiceNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidInvoiceTransitionError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        logger.info("invoice.status_changed", invoice_id=invoice.id, status=invoice.status.value)
        return _invoice_payload(invoice)

    @app.post("/invoices/{invoice_id}/send")
    def send_invoice(invoice_id: str) -> dict[str, Any]:
        return _transition(invoice_id, InvoiceStatus.SENT)

    @app.post("/invoices/{invoice_id}/mark-paid")
    def mark_paid(invoice_id: str) -> dict[str, Any]:
        return _transition(invoice_id, InvoiceStatus.PAID)

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        return {"items": [asdict(record) for record in trace_store.list_recent(limit=limit)]}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    app.state.store = store
    app.state.orchestrator = orchestrator
    app.state.ingest_pipeline = ingest_pipeline
    return app


app = create_app()
