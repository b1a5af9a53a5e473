from __future__ import annotations

import time
from collections import defaultdict, deque
from contextlib import contextmanager
from threading import Lock
from typing import Any, Deque, Dict, List

MetricsSnapshot = Dict[str, Any]

_LATENCY_SLO_P95 = {
    "generation": 8000.0,
    "chat_turn": 10000.0,
}


class RequestMetrics:
    """In-process latency and counter registry exposed by ``GET /metrics``."""

    def __init__(self, percentile_window: int = 200) -> None:
        self._lock = Lock()
        self._counts: Dict[str, int] = defaultdict(int)
        self._latency_sum: Dict[str, float] = defaultdict(float)
        self._latency_samples: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=percentile_window))
        self._phase_latency_sum: Dict[str, float] = defaultdict(float)
        self._phase_latency_samples: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=percentile_window))
        self._counters: Dict[str, int] = defaultdict(int)

    def record(self, endpoint: str, duration_ms: float) -> None:
        with self._lock:
            self._counts[endpoint] += 1
            self._latency_sum[endpoint] += duration_ms
            self._latency_samples[endpoint].append(duration_ms)

    def record_phase(self, phase: str, duration_ms: float) -> None:
        with self._lock:
            self._phase_latency_sum[phase] += duration_ms
            self._phase_latency_samples[phase].append(duration_ms)

    def increment_counter(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] += amount

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            endpoints = {
                endpoint: _summarize(list(self._latency_samples[endpoint]), self._latency_sum[endpoint], count)
                for endpoint, count in self._counts.items()
            }
            phases = {
                phase: _summarize(list(samples), self._phase_latency_sum[phase], len(samples))
                for phase, samples in self._phase_latency_samples.items()
            }
            counters = dict(self._counters)
        data: MetricsSnapshot = {"endpoints": endpoints}
        if phases:
            data["phases"] = phases
            data["status"] = _latency_status(phases)
        data["counters"] = counters
        return data

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._latency_sum.clear()
            self._latency_samples.clear()
            self._phase_latency_sum.clear()
            self._phase_latency_samples.clear()
            self._counters.clear()


@contextmanager
def time_phase(metrics: RequestMetrics, phase: str):
    start = time.perf_counter()
    try:
        yield
    finally:
        metrics.record_phase(phase, (time.perf_counter() - start) * 1000)


def _summarize(samples: List[float], total: float, count: int) -> Dict[str, float]:
    percentiles = _compute_percentiles(samples)
    return {
        "count": float(count),
        "avg_latency_ms": (total / count) if count else 0.0,
        "p50_latency_ms": percentiles.get(50, 0.0),
        "p95_latency_ms": percentiles.get(95, 0.0),
    }


def _compute_percentiles(samples: List[float]) -> Dict[int, float]:
    if not samples:
        return {}
    ordered = sorted(samples)
    results: Dict[int, float] = {}
    for percentile in (50, 95):
        index = int(round((percentile / 100) * (len(ordered) - 1)))
        index = min(max(index, 0), len(ordered) - 1)
        results[percentile] = ordered[index]
    return results


def _latency_status(phases: Dict[str, Dict[str, float]]) -> Dict[str, Dict[str, Any]]:
    status: Dict[str, Dict[str, Any]] = {}
    for phase, values in phases.items():
        slo = _LATENCY_SLO_P95.get(phase)
        if slo is None:
            continue
        p95 = values.get("p95_latency_ms", 0.0)
        status[phase] = {
            "p95_latency_ms": p95,
            "slo_p95_ms": slo,
            "status": _classify_status(p95, slo),
        }
    return status


def _classify_status(value: float, slo: float) -> str:
    if value <= slo:
        return "green"
    if value <= slo * 1.25:
        return "amber"
    return "red"
