"""SQLite adapter for the portal store."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from bizportal.errors import (
    DuplicateTenantError,
    InvoiceNotFoundError,
    StorageError,
    TenantNotFoundError,
)
from bizportal.storage.store import check_invoice_transition, new_id, utcnow
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

_SCHEMA = """
CREATE TABLE IF NOT EXISTS tenants (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    website TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS kb_chunks (
    id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL REFERENCES tenants (id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    text TEXT NOT NULL,
    term_frequencies TEXT
);
CREATE INDEX IF NOT EXISTS kb_chunks_tenant ON kb_chunks (tenant_id, position);
CREATE TABLE IF NOT EXISTS bookings (
    id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL REFERENCES tenants (id) ON DELETE CASCADE,
    service TEXT NOT NULL,
    start_time TEXT NOT NULL,
    customer_phone TEXT NOT NULL,
    source TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS invoices (
    id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL REFERENCES tenants (id) ON DELETE CASCADE,
    amount INTEGER NOT NULL,
    currency TEXT NOT NULL,
    status TEXT NOT NULL,
    paylink TEXT NOT NULL,
    customer_phone TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


class SqlitePortalStore:
    """File-backed store using one short-lived connection per operation.

    Chunk replacement deletes and re-inserts the tenant's rows inside one
    transaction, so concurrent readers see either the old or the new chunk
    set, never a mix. Chunks, bookings and invoices reference their tenant
    and are removed with it.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"sqlite store failure: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageError(f"sqlite store failure: {exc}") from exc
        finally:
            conn.close()

    # Tenants

    def find_tenant(self, tenant_id: str) -> Tenant | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tenants WHERE id = ?", (tenant_id,)).fetchone()
        return _tenant(row) if row else None

    def create_tenant(self, name: str, email: str, website: str) -> Tenant:
        tenant = Tenant(id=new_id(), name=name, email=email, website=website, created_at=utcnow())
        with self._connect() as conn:
            try:
                conn.execute(
                    "INSERT INTO tenants(id, name, email, website, created_at) VALUES(?, ?, ?, ?, ?)",
                    (tenant.id, name, email, website, tenant.created_at.isoformat()),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateTenantError("email") from exc
        return tenant

    def delete_tenant(self, tenant_id: str) -> None:
        with self._connect() as conn:
            deleted = conn.execute("DELETE FROM tenants WHERE id = ?", (tenant_id,)).rowcount
            if not deleted:
                raise TenantNotFoundError(tenant_id)

    # Chunks

    def list_chunks(self, tenant_id: str) -> list[KnowledgeChunk]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, tenant_id, text, term_frequencies FROM kb_chunks "
                "WHERE tenant_id = ? ORDER BY position",
                (tenant_id,),
            ).fetchall()
        return [_chunk(row) for row in rows]

    def replace_chunks(self, tenant_id: str, drafts: Sequence[ChunkDraft]) -> int:
        rows = [
            (new_id(), tenant_id, position, draft.text, json.dumps(draft.term_frequencies))
            for position, draft in enumerate(drafts)
        ]
        with self._connect() as conn:
            _require_tenant(conn, tenant_id)
            conn.execute("DELETE FROM kb_chunks WHERE tenant_id = ?", (tenant_id,))
            conn.executemany(
                "INSERT INTO kb_chunks(id, tenant_id, position, text, term_frequencies) "
                "VALUES(?, ?, ?, ?, ?)",
                rows,
            )
        return len(rows)

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
        with self._connect() as conn:
            _require_tenant(conn, draft.tenant_id)
            conn.execute(
                "INSERT INTO bookings(id, tenant_id, service, start_time, customer_phone, "
                "source, created_at) VALUES(?, ?, ?, ?, ?, ?, ?)",
                (
                    booking.id,
                    booking.tenant_id,
                    booking.service,
                    booking.start_time.isoformat(),
                    booking.customer_phone,
                    booking.source,
                    booking.created_at.isoformat(),
                ),
            )
        return booking

    def list_bookings(self, tenant_id: str) -> list[Booking]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM bookings WHERE tenant_id = ? ORDER BY created_at DESC, rowid DESC",
                (tenant_id,),
            ).fetchall()
        return [_booking(row) for row in rows]

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
        with self._connect() as conn:
            _require_tenant(conn, draft.tenant_id)
            conn.execute(
                "INSERT INTO invoices(id, tenant_id, amount, currency, status, paylink, "
                "customer_phone, created_at) VALUES(?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    invoice.id,
                    invoice.tenant_id,
                    invoice.amount,
                    invoice.currency,
                    invoice.status.value,
                    invoice.paylink,
                    invoice.customer_phone,
                    invoice.created_at.isoformat(),
                ),
            )
        return invoice

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
        return _invoice(row) if row else None

    def update_invoice_paylink(self, invoice_id: str, paylink: str) -> Invoice:
        with self._connect() as conn:
            updated = conn.execute(
                "UPDATE invoices SET paylink = ? WHERE id = ?", (paylink, invoice_id)
            ).rowcount
            if not updated:
                raise InvoiceNotFoundError(invoice_id)
            row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
        return _invoice(row)

    def update_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
            if row is None:
                raise InvoiceNotFoundError(invoice_id)
            check_invoice_transition(InvoiceStatus(row["status"]), status)
            conn.execute("UPDATE invoices SET status = ? WHERE id = ?", (status.value, invoice_id))
            row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
        return _invoice(row)

    def list_invoices(self, tenant_id: str) -> list[Invoice]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM invoices WHERE tenant_id = ? ORDER BY created_at DESC, rowid DESC",
                (tenant_id,),
            ).fetchall()
        return [_invoice(row) for row in rows]


def _require_tenant(conn: sqlite3.Connection, tenant_id: str) -> None:
    if conn.execute("SELECT 1 FROM tenants WHERE id = ?", (tenant_id,)).fetchone() is None:
        raise TenantNotFoundError(tenant_id)


def _tenant(row: sqlite3.Row) -> Tenant:
    return Tenant(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        website=row["website"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _chunk(row: sqlite3.Row) -> KnowledgeChunk:
    raw = row["term_frequencies"]
    return KnowledgeChunk(
        id=row["id"],
        tenant_id=row["tenant_id"],
        text=row["text"],
        term_frequencies={str(k): int(v) for k, v in json.loads(raw).items()} if raw else None,
    )


def _booking(row: sqlite3.Row) -> Booking:
    return Booking(
        id=row["id"],
        tenant_id=row["tenant_id"],
        service=row["service"],
        start_time=datetime.fromisoformat(row["start_time"]),
        customer_phone=row["customer_phone"],
        source=row["source"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _invoice(row: sqlite3.Row) -> Invoice:
    return Invoice(
        id=row["id"],
        tenant_id=row["tenant_id"],
        amount=int(row["amount"]),
        currency=row["currency"],
        status=InvoiceStatus(row["status"]),
        paylink=row["paylink"],
        customer_phone=row["customer_phone"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
