"""Prometheus metrics for the judge service."""

from __future__ import annotations

import prometheus_client

_METRICS_REGISTRY: prometheus_client.CollectorRegistry | None = prometheus_client.CollectorRegistry()


def metrics_registry() -> prometheus_client.CollectorRegistry:
    global _METRICS_REGISTRY
    if _METRICS_REGISTRY is None:
        _METRICS_REGISTRY = prometheus_client.CollectorRegistry()
    return _METRICS_REGISTRY


WEBHOOK_REQUESTS_TOTAL = prometheus_client.Counter(
    "redshell_webhook_requests_total", "Webhook requests by response status", ["http_status"], registry=metrics_registry()
)
VERDICTS_TOTAL = prometheus_client.Counter(
    "redshell_verdicts_total", "Verdicts produced by judge", ["judge", "approved"], registry=metrics_registry()
)
SUBMISSIONS_TOTAL = prometheus_client.Counter(
    "redshell_submissions_total", "On-chain verdict submissions by outcome", ["outcome"], registry=metrics_registry()
)
SUBMISSION_SECONDS = prometheus_client.Histogram(
    "redshell_submission_seconds", "Time spent submitting and confirming verdict transactions", registry=metrics_registry()
)


def render_latest() -> bytes:
    return prometheus_client.generate_latest(metrics_registry())


CONTENT_TYPE_LATEST = prometheus_client.CONTENT_TYPE_LATEST

__all__ = [
    "CONTENT_TYPE_LATEST",
    "SUBMISSIONS_TOTAL",
    "SUBMISSION_SECONDS",
    "VERDICTS_TOTAL",
    "WEBHOOK_REQUESTS_TOTAL",
    "metrics_registry",
    "render_latest",
]
