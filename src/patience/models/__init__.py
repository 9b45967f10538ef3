"""Data models for policies, strategies, call options and request descriptors."""

from patience.models.enums import LifecycleEvent, Phase
from patience.models.policies import (
    CallOptions,
    Notification,
    ReAttemptPolicy,
    RetryPolicy,
    Strategy,
)
from patience.models.requests import RequestDescriptor

__all__ = [
    "LifecycleEvent",
    "Phase",
    "CallOptions",
    "Notification",
    "ReAttemptPolicy",
    "RetryPolicy",
    "Strategy",
    "RequestDescriptor",
]
