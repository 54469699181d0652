import pytest

from bizportal.obs.tracing import Timer, TraceStore


def test_trace_store_keeps_most_recent_records() -> None:
    store = TraceStore(max_records=2)
    first = store.create_record(tenant_id="t1", kind="faq", latency_ms=1.0)
    store.create_record(tenant_id="t1", kind="booking", latency_ms=2.0)
    third = store.create_record(tenant_id="t1", kind="payment", latency_ms=3.0)

    recent = store.list_recent()

    assert [record.kind for record in recent] == ["booking", "payment"]
    assert store.get(third.trace_id) is third
    with pytest.raises(KeyError):
        store.get(first.trace_id)


def test_summary_counts_kinds_and_failures() -> None:
    store = TraceStore()
    assert store.summary()["total_requests"] == 0

    store.create_record(tenant_id="t1", kind="faq", latency_ms=4.0, chunk_id="c1")
    store.create_record(tenant_id="t1", kind="faq", latency_ms=6.0)
    store.create_record(tenant_id="t2", kind="payment", latency_ms=2.0, failed=True)

    summary = store.summary()

    assert summary["total_requests"] == 3
    assert summary["by_kind"] == {"faq": 2, "payment": 1}
    assert summary["failures"] == 1
    assert summary["avg_latency_ms"] == pytest.approx(4.0)


def test_timer_measures_elapsed_time() -> None:
    with Timer() as timer:
        sum(range(1000))

    assert timer.elapsed_ms >= 0.0
