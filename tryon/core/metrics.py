"""
Prometheus Metrics for Observability

Tracks request latency, try-on generations and storage operations.
Exposes /api/v1/metrics for Prometheus scraping.
"""

import time
from contextlib import contextmanager

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY
)

# =============================================================================
# Metrics Definitions
# =============================================================================

# Orchestration latency - per stage
stage_latency_seconds = Histogram(
    "tryon_stage_latency_seconds",
    "Time spent in each try-on orchestration stage",
    labelnames=["stage", "status"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0]
)

generations_total = Counter(
    "tryon_generations_total",
    "Total number of try-on generations",
    labelnames=["status"]
)

storage_operations_total = Counter(
    "storage_operations_total",
    "Storage backend operations",
    labelnames=["backend", "operation", "status"]
)

# API Request Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    labelnames=["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)

# Application Info
app_info = Info(
    "tryon_app",
    "Application information"
)


# =============================================================================
# Helper Functions
# =============================================================================

def set_app_info(version: str, environment: str):
    """Set application info metric."""
    app_info.info({
        "version": version,
        "environment": environment
    })


@contextmanager
def track_stage_latency(stage: str):
    """
    Context manager to track stage latency.

    Usage:
        with track_stage_latency("staging"):
            # do work
    """
    start = time.time()
    status = "success"
    try:
        yield
    except BaseException:
        status = "error"
        raise
    finally:
        stage_latency_seconds.labels(stage=stage, status=status).observe(time.time() - start)


def record_generation(status: str):
    generations_total.labels(status=status).inc()


def record_storage_operation(backend: str, operation: str, success: bool):
    storage_operations_total.labels(
        backend=backend,
        operation=operation,
        status="success" if success else "error"
    ).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
