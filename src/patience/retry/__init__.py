"""
Two-tier retry orchestration.

Main Components:
    - RetryOrchestrator: fluent call configuration and the retry/re-attempt state machine
    - resolve: per-key policy resolution over library defaults
    - bounded_retry: tenacity-based bounded retry primitive
    - PatienceError and subclasses: rejection reasons of `run()`

Usage:
    >>> from patience.retry import RetryOrchestrator
    >>> orchestrator = RetryOrchestrator(executor, blocked_groups, strategies)
    >>> response = await orchestrator.request(descriptor).re_attempt().run()
"""

from patience.retry.bounded import BoundedRetryOptions, bounded_retry
from patience.retry.engine import RetryOrchestrator
from patience.retry.exceptions import (
    BlockedGroupError,
    ConfigurationError,
    PatienceError,
    ReAttemptExhaustedError,
    RetryExhaustedError,
)
from patience.retry.resolver import resolve

__all__ = [
    "RetryOrchestrator",
    "BoundedRetryOptions",
    "bounded_retry",
    "resolve",
    "PatienceError",
    "BlockedGroupError",
    "RetryExhaustedError",
    "ReAttemptExhaustedError",
    "ConfigurationError",
]
