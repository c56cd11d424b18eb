"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "ctxb_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "ctxb_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

CONTEXT_REQUESTS = Counter(
    "ctxb_context_requests_total",
    "Context builds by the tier that produced the result",
    labelnames=("tier",),
    registry=REGISTRY,
)

CONTEXT_BUILD_SECONDS = Histogram(
    "ctxb_context_build_seconds",
    "Duration of context builds",
    registry=REGISTRY,
)

CACHE_LOOKUPS = Counter(
    "ctxb_cache_lookups_total",
    "Cache lookups by entry kind and outcome",
    labelnames=("kind", "result"),
    registry=REGISTRY,
)

EMBEDDING_FAILURES = Counter(
    "ctxb_embedding_failures_total",
    "Embedding calls that produced no usable vectors",
    labelnames=("operation",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "CONTEXT_REQUESTS",
    "CONTEXT_BUILD_SECONDS",
    "CACHE_LOOKUPS",
    "EMBEDDING_FAILURES",
    "metrics_response",
]
