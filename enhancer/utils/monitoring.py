"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests_total = Counter(
    "enhancer_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "enhancer_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

pipeline_attempts_total = Counter(
    "enhancer_pipeline_attempts_total",
    "Document processing attempts by outcome",
    ["outcome"],
)

stage_duration_seconds = Histogram(
    "enhancer_stage_duration_seconds",
    "Wall-clock duration of pipeline stages",
    ["stage"],
)

generation_results_total = Counter(
    "enhancer_generation_results_total",
    "Rewrites produced per generation provider",
    ["provider"],
)

provider_failures_total = Counter(
    "enhancer_provider_failures_total",
    "Generation provider calls that failed or timed out",
    ["provider"],
)

acquired_references = Histogram(
    "enhancer_acquired_references",
    "Reference pages acquired per attempt",
    buckets=(0, 1, 2, 3, 5, 10),
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)
