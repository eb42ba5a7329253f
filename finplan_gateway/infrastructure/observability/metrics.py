"""Prometheus metrics for projections, generated series and installment settlements"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Projection metrics
projection_counter = Counter(
    "finplan_projection_total",
    "Cash-flow projections computed",
    ["risk"],  # negative_balance | ok
)

# Occurrence metrics
occurrences_generated_counter = Counter(
    "finplan_occurrences_generated_total",
    "Ledger entries materialized by the occurrence generator",
    ["recurrence"],
)

# Loan metrics
installment_settlement_counter = Counter(
    "finplan_installment_settlement_total",
    "Loan installments settled",
    ["timing"],  # early | on_time | late
)

anticipation_savings_histogram = Histogram(
    "finplan_anticipation_savings",
    "Savings obtained by paying installments early",
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000],
)

# Domain rejections
domain_error_counter = Counter(
    "finplan_domain_errors_total",
    "Requests rejected by domain validation",
    ["kind"],  # validation | inconsistency
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_projection(at_risk: bool) -> None:
    projection_counter.labels(risk="negative_balance" if at_risk else "ok").inc()


def record_occurrences(recurrence: str, count: int) -> None:
    occurrences_generated_counter.labels(recurrence=recurrence).inc(count)


def record_installment_settlement(timing: str, savings: Decimal) -> None:
    """Record settlement timing and, for early payments, the savings obtained"""
    installment_settlement_counter.labels(timing=timing).inc()
    if timing == "early":
        anticipation_savings_histogram.observe(float(savings))
