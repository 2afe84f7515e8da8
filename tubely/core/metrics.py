"""Prometheus metrics for the HTTP surface and the upload pipeline."""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    Gauge,
    generate_latest,
    multiprocess,
)

# Create a custom registry for our metrics
REGISTRY = CollectorRegistry()

# Check if running in multiprocess mode (e.g., with gunicorn)
if "prometheus_multiproc_dir" in os.environ:
    multiprocess.MultiProcessCollector(REGISTRY)


# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "tubely_app",
    "Application information",
    registry=REGISTRY,
)


# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
    registry=REGISTRY,
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method", "endpoint"],
    registry=REGISTRY,
)


# ============================================
# Upload Pipeline Metrics
# ============================================
UPLOAD_PIPELINE_RUNS_TOTAL = Counter(
    "tubely_upload_pipeline_runs_total",
    "Upload pipeline runs by outcome (success or the name of the failing step)",
    ["outcome"],
    registry=REGISTRY,
)

UPLOAD_PIPELINE_STEP_DURATION_SECONDS = Histogram(
    "tubely_upload_pipeline_step_duration_seconds",
    "Duration of each upload pipeline step in seconds",
    ["step"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0],
    registry=REGISTRY,
)

UPLOADED_BYTES_TOTAL = Counter(
    "tubely_uploaded_bytes_total",
    "Bytes written to object storage by the upload pipeline",
    ["aspect"],
    registry=REGISTRY,
)

ORPHANED_OBJECTS_TOTAL = Counter(
    "tubely_orphaned_objects_total",
    "Objects stored whose owning record could not be updated",
    registry=REGISTRY,
)


def set_app_info(version: str, environment: str) -> None:
    """Record application version information."""
    APP_INFO.info({"version": version, "environment": environment})


def record_pipeline_outcome(outcome: str) -> None:
    UPLOAD_PIPELINE_RUNS_TOTAL.labels(outcome=outcome).inc()


def observe_step_duration(step: str, seconds: float) -> None:
    UPLOAD_PIPELINE_STEP_DURATION_SECONDS.labels(step=step).observe(seconds)


def record_orphaned_object() -> None:
    ORPHANED_OBJECTS_TOTAL.inc()


def get_metrics() -> bytes:
    """Render all metrics in the Prometheus exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
