"""
Enumerations for Patience lifecycle and phases.

Lifecycle event values are kept in their published camelCase form so that
existing listeners subscribed by name keep working.
"""

from enum import Enum


class LifecycleEvent(str, Enum):
    """
    Named lifecycle events broadcast by the orchestrator.

    Payload of every event is a human-readable message string.
    """

    RETRIES_FAILED = "retriesFailed"
    RE_ATTEMPTS_FAILED = "reAttemptsFailed"
    RE_ATTEMPT_SUCCESSFUL = "reAttemptSuccessful"


class Phase(str, Enum):
    """Escalation tier an executor try belongs to."""

    RETRY = "retry"
    RE_ATTEMPT = "re_attempt"
