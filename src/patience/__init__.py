"""
Patience: retry orchestration for asynchronous network calls.

Wraps an executor with a two-tier failure escalation:
- Retry: a short, bounded retry loop for transient failures
- Re-attempt: a slower escalation phase entered once retries are exhausted,
  during which the failing endpoint group is blocked so that other callers
  fail fast instead of piling on

Named strategies bundle both policies for reuse across call sites.
"""

from patience.client import Patience
from patience.events.bus import EventBus
from patience.logging_config import configure_logging
from patience.models.enums import LifecycleEvent, Phase
from patience.models.policies import (
    CallOptions,
    Notification,
    ReAttemptPolicy,
    RetryPolicy,
    Strategy,
)
from patience.models.requests import RequestDescriptor
from patience.registry.blocked_groups import BlockedGroupRegistry
from patience.registry.strategies import StrategyRegistry
from patience.retry.engine import RetryOrchestrator
from patience.retry.exceptions import (
    BlockedGroupError,
    ConfigurationError,
    PatienceError,
    ReAttemptExhaustedError,
    RetryExhaustedError,
)

__version__ = "0.1.0"

__all__ = [
    "Patience",
    "RetryOrchestrator",
    "BlockedGroupRegistry",
    "StrategyRegistry",
    "EventBus",
    "LifecycleEvent",
    "Phase",
    "CallOptions",
    "Notification",
    "RetryPolicy",
    "ReAttemptPolicy",
    "Strategy",
    "RequestDescriptor",
    "PatienceError",
    "BlockedGroupError",
    "RetryExhaustedError",
    "ReAttemptExhaustedError",
    "ConfigurationError",
    "configure_logging",
]
