"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "lgr_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

PIPELINE_ENTRIES = Counter(
    "lgr_pipeline_entries_total",
    "Queue entries handled by the analysis pipeline",
    labelnames=("status",),
    registry=REGISTRY,
)

GENERATION_RETRIES = Counter(
    "lgr_generation_retries_total",
    "Retries issued after a throttling signal",
    registry=REGISTRY,
)

PHASE_DURATION = Histogram(
    "lgr_phase_duration_seconds",
    "Duration of each analysis phase",
    labelnames=("phase",),
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "lgr_case_vectors",
    "Number of case vectors stored in the semantic store",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "PIPELINE_ENTRIES",
    "GENERATION_RETRIES",
    "PHASE_DURATION",
    "INDEX_SIZE",
    "metrics_response",
]
