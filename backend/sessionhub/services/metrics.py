"""Prometheus metrics for the session lifecycle.

Partial failures are accepted states rather than crashes, so they are
counted here to stay monitorable. Metrics are exposed via HTTP on
port 8001 (configurable via METRICS_PORT).

Metrics exported:
- session_operations_total: Counter of orchestrator operations by outcome
- session_partial_failures_total: Counter of partial provisioning/teardown
- realtime_provider_requests_total: Counter of provider calls by outcome
- session_reconcile_total: Counter of reconciler results

Usage:
    from sessionhub.services.metrics import start_metrics_server, partial_failures

    start_metrics_server(port=8001)
    partial_failures.labels(operation='create', kind='PartialProvisioningError').inc()
"""

from prometheus_client import Counter, start_http_server
import logging

logger = logging.getLogger(__name__)

# Orchestrator outcomes
session_operations = Counter(
    'session_operations_total',
    'Session lifecycle operations',
    labelnames=['operation', 'outcome']  # outcome: ok or error kind
)

# Store committed but realtime resources disagree
partial_failures = Counter(
    'session_partial_failures_total',
    'Sessions left with missing or orphaned realtime resources',
    labelnames=['operation', 'kind']
)

# Calls to the realtime provider
provider_requests = Counter(
    'realtime_provider_requests_total',
    'Requests sent to the realtime provider',
    labelnames=['operation', 'outcome']  # outcome: ok, error, not_found
)

# Reconciler results
reconcile_results = Counter(
    'session_reconcile_total',
    'Drift ledger entries processed by the reconciler',
    labelnames=['outcome']  # outcome: repaired, retained, dropped
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except OSError as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
