# callbench/metrics.py
from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from callbench.types import Phase, RunResult


class PhaseMetrics:
    """Prometheus view of timed runs, kept in a private registry."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        self.phase_ms = Histogram(
            "callbench_phase_ms",
            "Per-sample phase duration (ms)",
            ["phase", "policy"],
            buckets=(0.05, 0.1, 0.5, 1, 2, 5, 10, 20, 50, 100, 500),
            registry=self.registry,
        )
        self.calls = Counter(
            "callbench_calls_total",
            "Completed timed calls",
            ["policy"],
            registry=self.registry,
        )

    def observe(self, result: RunResult) -> None:
        pol = result.policy.value
        for s in result.samples:
            self.phase_ms.labels(phase=s.phase.value, policy=pol).observe(s.elapsed_ns / 1e6)
        self.calls.labels(policy=pol).inc(result.stats(Phase.CALL).count)

    def render(self) -> str:
        return generate_latest(self.registry).decode("utf-8")
