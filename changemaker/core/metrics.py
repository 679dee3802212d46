"""Application metrics using the Prometheus client library.

All metrics live in this one module so there is a single inventory of
what the service measures.  Other modules import a metric and bump it
where the behavior happens.

Counters only go up; Prometheus derives rates with rate().  Histograms
bucket observations so dashboards can compute percentiles:

  histogram_quantile(0.95, rate(http_request_duration_seconds_bucket[5m]))
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Tenant isolation and identity
# ---------------------------------------------------------------------------

ACCESS_DENIALS = Counter(
    "access_denials_total",
    "Requests rejected by the access guard",
    # unauthenticated|not_member|admin_required|cross_tenant
    ["reason"],
)

PRINCIPAL_SYNCS = Counter(
    "principal_syncs_total",
    "Principal upserts from identity-provider sign-ins",
    ["result"],  # "ok" or "conflict"
)

ENROLLMENTS_CREATED = Counter(
    "enrollments_created_total",
    "Enrollments created across all workspaces",
)

SESSION_REVOCATION_CHECKS = Counter(
    "session_revocation_checks_total",
    "Revocation-list lookups by result",
    ["result"],  # "revoked" or "valid"
)
