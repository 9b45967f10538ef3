"""Prometheus metrics for Patience.

Metrics are registered on the default prometheus_client registry and are
exposed by whatever exporter the host application runs. Alert rules should
be configured for:
- escalations_total (endpoint groups entering the re-attempt phase)
- blocked_rejections_total (calls failed fast because their group is blocked)
"""

from prometheus_client import Counter, Gauge

# === Try Metrics ===

tries_total = Counter(
    "patience_tries_total",
    "Total executor tries by phase and outcome",
    ["phase", "success"],
)
"""
Executor tries counter.

Labels:
- phase: retry (tier 1), re_attempt (tier 2)
- success: true, false
"""

phase_outcomes_total = Counter(
    "patience_phase_outcomes_total",
    "Total completed phases by phase and outcome",
    ["phase", "outcome"],
)
"""
Phase outcome counter.

Labels:
- phase: retry, re_attempt
- outcome: resolved, exhausted
"""

# === Escalation Metrics ===

escalations_total = Counter(
    "patience_escalations_total",
    "Total retry -> re-attempt escalations",
)

blocked_rejections_total = Counter(
    "patience_blocked_rejections_total",
    "Total calls rejected because their group was blocked",
)

blocked_groups_gauge = Gauge(
    "patience_blocked_groups",
    "Number of groups currently blocked",
)
