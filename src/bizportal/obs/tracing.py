"""In-memory tracing and latency accounting for inbound messages."""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(slots=True)
class InboundTrace:
    trace_id: str
    timestamp_utc: str
    tenant_id: str
    kind: str
    chunk_id: str | None
    latency_ms: float
    failed: bool


class TraceStore:
    """Bounded in-memory trace storage for API-level observability."""

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: dict[str, InboundTrace] = {}
        self._max_records = max_records
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        tenant_id: str,
        kind: str,
        latency_ms: float,
        chunk_id: str | None = None,
        failed: bool = False,
    ) -> InboundTrace:
        record = InboundTrace(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            tenant_id=tenant_id,
            kind=kind,
            chunk_id=chunk_id,
            latency_ms=latency_ms,
            failed=failed,
        )
        with self._lock:
            self._records[record.trace_id] = record
            while len(self._records) > self._max_records:
                # dicts keep insertion order, so this drops the oldest.
                self._records.pop(next(iter(self._records)))
        return record

    def get(self, trace_id: str) -> InboundTrace:
        with self._lock:
            record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[InboundTrace]:
        with self._lock:
            return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, object]:
        """Aggregate request counts and latency for dashboard display."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "by_kind": {},
                "failures": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
            }

        by_kind: dict[str, int] = {}
        for record in records:
            by_kind[record.kind] = by_kind.get(record.kind, 0) + 1

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        return {
            "total_requests": total,
            "by_kind": by_kind,
            "failures": sum(1 for record in records if record.failed),
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
        }


class Timer:
    """Simple context timer used by the orchestrator."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
