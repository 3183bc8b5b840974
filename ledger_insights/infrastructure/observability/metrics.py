"""Prometheus metrics for insight requests, detected anomalies and analysis latency"""

from typing import List
from prometheus_client import Counter, Histogram

from ledger_insights.domain.models import AnomalyDetection

insights_request_counter = Counter(
    "ledger_insights_requests_total",
    "Insight requests served",
    ["endpoint", "outcome"],  # basic | advanced, success | error
)

recurring_pattern_counter = Counter(
    "ledger_recurring_patterns_detected_total",
    "Recurring patterns detected",
    ["frequency"],
)

anomaly_counter = Counter(
    "ledger_anomalies_detected_total",
    "Anomalies flagged by the detector",
    ["source", "severity"],  # amount | timing, low | medium | high
)

analysis_duration_histogram = Histogram(
    "ledger_analysis_duration_seconds",
    "Time spent in pattern detection and forecasting",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_analysis(frequencies: List[str], anomalies: List[AnomalyDetection]) -> None:
    """Record pattern and anomaly counts for one analysis run"""
    for frequency in frequencies:
        recurring_pattern_counter.labels(frequency=frequency).inc()

    for anomaly in anomalies:
        source = "timing" if anomaly.time_deviation is not None else "amount"
        anomaly_counter.labels(source=source, severity=anomaly.severity).inc()
