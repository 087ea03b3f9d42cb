"""
Prometheus metrics for the CRD extractor.

The extractor is a batch job, so metrics are not served over HTTP. They are
collected in a dedicated registry and can be written in the text exposition
format for the node-exporter textfile collector after each run.
"""

import logging
import time
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client import write_to_textfile

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

# Metrics definitions
CRD_FETCH_TOTAL = Counter(
    "crd_extractor_fetch_total",
    "Total number of CRD fetch attempts",
    ["result"],
    registry=None,  # Registered in get_metrics_registry()
)

CRD_FETCH_DURATION = Histogram(
    "crd_extractor_fetch_duration_seconds",
    "Time spent fetching a single CRD document",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=None,
)

CRD_FETCH_IN_FLIGHT = Gauge(
    "crd_extractor_fetch_in_flight",
    "Number of CRD fetches currently running",
    registry=None,
)

SCHEMAS_PRODUCED = Gauge(
    "crd_extractor_schemas_produced",
    "Number of JSON schema files produced by the last conversion",
    registry=None,
)

CONVERTER_EXIT_STATUS = Gauge(
    "crd_extractor_converter_exit_status",
    "Exit status of the last converter run",
    registry=None,
)

RUN_DURATION = Histogram(
    "crd_extractor_run_duration_seconds",
    "Duration of complete extraction runs",
    ["result"],
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0],
    registry=None,
)

LAST_RUN_TIMESTAMP = Gauge(
    "crd_extractor_last_run_timestamp",
    "Unix timestamp of the last completed run",
    ["result"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()
        for metric in [
            CRD_FETCH_TOTAL,
            CRD_FETCH_DURATION,
            CRD_FETCH_IN_FLIGHT,
            SCHEMAS_PRODUCED,
            CONVERTER_EXIT_STATUS,
            RUN_DURATION,
            LAST_RUN_TIMESTAMP,
        ]:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsCollector:
    """Records pipeline events into the extractor's metrics."""

    def __init__(self):
        """Initialize metrics collector."""
        self.registry = get_metrics_registry()

    def fetch_started(self) -> None:
        CRD_FETCH_IN_FLIGHT.inc()

    def fetch_finished(self, result: str, duration: float) -> None:
        """
        Record the end of one fetch attempt.

        Args:
            result: "success" or the fetch error type
            duration: Attempt duration in seconds
        """
        CRD_FETCH_IN_FLIGHT.dec()
        CRD_FETCH_TOTAL.labels(result=result).inc()
        CRD_FETCH_DURATION.observe(duration)

    def record_conversion(self, exit_status: int, produced_count: int) -> None:
        CONVERTER_EXIT_STATUS.set(exit_status)
        SCHEMAS_PRODUCED.set(produced_count)

    def record_run(self, result: str, duration: float) -> None:
        RUN_DURATION.labels(result=result).observe(duration)
        LAST_RUN_TIMESTAMP.labels(result=result).set(time.time())

    def write(self, path: Path) -> None:
        """
        Write all metrics to a textfile.

        Failures are logged and not raised: metrics never fail a run.

        Args:
            path: Destination file (written atomically by prometheus_client)
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            write_to_textfile(str(path), self.registry)
            logger.debug(f"Metrics written to {path}", extra={"path": path})
        except OSError as e:
            logger.warning(f"Failed to write metrics to {path}: {e}")
