"""Prometheus metrics for the dispatch core.

Counters are incremented by each component after its operation commits, so a
failed operation never moves a success counter.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

# Use a separate registry to avoid default Python metrics
REGISTRY = CollectorRegistry()

dispatch_drivers_registered_total = Counter(
    "dispatch_drivers_registered_total",
    "Total drivers registered",
    registry=REGISTRY,
)

dispatch_rides_total = Counter(
    "dispatch_rides_total",
    "Ride lifecycle transitions by resulting status",
    ["status"],
    registry=REGISTRY,
)

dispatch_match_failures_total = Counter(
    "dispatch_match_failures_total",
    "Match attempts that found no available driver",
    registry=REGISTRY,
)

dispatch_transfer_failures_total = Counter(
    "dispatch_transfer_failures_total",
    "Fund transfers that failed, by operation",
    ["operation"],
    registry=REGISTRY,
)

dispatch_platform_fees_total = Counter(
    "dispatch_platform_fees_total",
    "Platform fees collected in fare units",
    registry=REGISTRY,
)

dispatch_fee_basis_points = Gauge(
    "dispatch_fee_basis_points",
    "Current platform fee level in basis points",
    registry=REGISTRY,
)

dispatch_path_scan_nodes = Histogram(
    "dispatch_path_scan_nodes",
    "Scan budget used by path cost queries after clamping",
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500, 1000),
    registry=REGISTRY,
)


def record_ride_transition(status: str) -> None:
    dispatch_rides_total.labels(status=status).inc()


def record_transfer_failure(operation: str) -> None:
    dispatch_transfer_failures_total.labels(operation=operation).inc()


def record_settlement(platform_fee: int) -> None:
    record_ride_transition("completed")
    if platform_fee > 0:
        dispatch_platform_fees_total.inc(platform_fee)


def render_latest() -> bytes:
    """Prometheus text exposition of the dispatch registry."""
    return generate_latest(REGISTRY)
