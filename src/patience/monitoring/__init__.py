"""Monitoring and metrics instrumentation for Patience.

Exports Prometheus metrics for operational monitoring and alerting.
"""

from patience.monitoring.metrics import (
    blocked_groups_gauge,
    blocked_rejections_total,
    escalations_total,
    phase_outcomes_total,
    tries_total,
)

__all__ = [
    "tries_total",
    "phase_outcomes_total",
    "escalations_total",
    "blocked_rejections_total",
    "blocked_groups_gauge",
]
