"""Prometheus-compatible metrics for the analysis service.

Each ``MetricsExporter`` owns its own ``CollectorRegistry`` so that several
application instances (and tests) never collide on metric names.
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from textforensics.core.pipeline import AnalysisResponse, count_findings

# Analysis latency buckets in milliseconds
_LATENCY_BUCKETS_MS = (1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)


class MetricsExporter:
    """Prometheus metrics for analyses.

    Provides:
    - Counters: analyses_total{check}, findings_total{check}, requests_rejected_total{reason}
    - Histograms: analysis_latency_ms, input_chars
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.analyses = Counter(
            "textforensics_analyses_total",
            "Completed analyses per result key",
            ["check"],
            registry=self.registry,
        )

        self.findings = Counter(
            "textforensics_findings_total",
            "Findings reported per result key",
            ["check"],
            registry=self.registry,
        )

        self.requests_rejected = Counter(
            "textforensics_requests_rejected_total",
            "Requests rejected before analysis",
            ["reason"],
            registry=self.registry,
        )

        self.analysis_latency_ms = Histogram(
            "textforensics_analysis_latency_milliseconds",
            "Wall-clock time of one analysis in milliseconds",
            buckets=_LATENCY_BUCKETS_MS,
            registry=self.registry,
        )

        self.input_chars = Histogram(
            "textforensics_input_chars",
            "Length of analyzed text in characters",
            buckets=(100, 1_000, 10_000, 100_000, 1_000_000),
            registry=self.registry,
        )

    def record_analysis(self, response: AnalysisResponse, elapsed_ms: float, text_chars: int) -> None:
        """Record one completed analysis."""
        self.analysis_latency_ms.observe(elapsed_ms)
        self.input_chars.observe(text_chars)
        for check, result in response.server.items():
            self.analyses.labels(check=check).inc()
            found = count_findings(result)
            if found:
                self.findings.labels(check=check).inc(found)

    def record_rejection(self, reason: str) -> None:
        self.requests_rejected.labels(reason=reason).inc()

    def export_metrics(self) -> bytes:
        return generate_latest(self.registry)

    def get_metrics_text(self) -> str:
        """Export metrics in Prometheus format as text."""
        return self.export_metrics().decode("utf-8")


__all__ = ["CONTENT_TYPE_LATEST", "MetricsExporter"]
