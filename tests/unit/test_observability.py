from knowlaw.utils.observability import RequestMetrics, time_phase


def test_request_metrics_snapshot():
    metrics = RequestMetrics()
    metrics.record("/chat", 10.0)
    metrics.record("/chat", 20.0)
    metrics.record("/booking", 5.0)
    metrics.record_phase("generation", 25.0)
    metrics.record_phase("chat_turn", 12000.0)
    metrics.increment_counter("responder_fallback::timeout")
    metrics.increment_counter("responder_fallback::timeout")

    with time_phase(metrics, "phase_test"):
        pass

    snapshot = metrics.snapshot()
    endpoints = snapshot["endpoints"]
    assert endpoints["/chat"]["count"] == 2
    assert endpoints["/chat"]["avg_latency_ms"] == 15.0
    assert endpoints["/chat"]["p50_latency_ms"] == 10.0
    assert endpoints["/chat"]["p95_latency_ms"] == 20.0
    assert endpoints["/booking"]["count"] == 1

    phases = snapshot["phases"]
    assert phases["generation"]["avg_latency_ms"] == 25.0
    assert phases["phase_test"]["count"] == 1

    status = snapshot["status"]
    assert status["generation"]["status"] == "green"
    assert status["chat_turn"]["status"] == "amber"
    assert "phase_test" not in status

    assert snapshot["counters"]["responder_fallback::timeout"] == 2
    assert metrics.counter("responder_fallback::timeout") == 2
    assert metrics.counter("never_seen") == 0

    metrics.reset()
    assert metrics.snapshot() == {"endpoints": {}, "counters": {}}


def test_time_phase_records_on_error():
    metrics = RequestMetrics()
    try:
        with time_phase(metrics, "generation"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert metrics.snapshot()["phases"]["generation"]["count"] == 1
