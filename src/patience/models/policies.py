"""
Policy, strategy and call-option models.

These models describe how a single logical call is retried. They are all
frozen: the orchestrator's fluent setters build new values instead of
mutating shared ones.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class RetryPolicy(BaseModel):
    """
    Tier-1 retry policy.

    `interval_multiplier` scales the delay between successive tries
    (1 = constant interval).
    """
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(..., ge=1, description="Total number of tries")
    interval: float = Field(..., ge=0.0, description="Delay between tries in seconds")
    interval_multiplier: float = Field(default=1.0, ge=1.0, description="Backoff factor per try")


class ReAttemptPolicy(RetryPolicy):
    """
    Tier-2 re-attempt policy.

    `max_attempts` counts the overall number of re-attempt tries; the first
    one is considered consumed by the exhausted retry phase, so only
    `max_attempts - 1` further tries are issued.
    """


_PLACEHOLDER_POLICY = {"max_attempts": 1, "interval": 0.0, "interval_multiplier": 1.0}


class Strategy(BaseModel):
    """
    Named, reusable bundle of retry and re-attempt policies.

    Policy fields hold overrides (possibly partial). They are resolved
    against library defaults when the strategy is applied, exactly as if
    the corresponding setter had been called with them. Given values are
    checked against the RetryPolicy bounds on construction, so a
    registered strategy always applies cleanly.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    retry: Optional[dict[str, Any]] = None
    re_attempt: Optional[dict[str, Any]] = Field(default=None, alias="reAttempt")
    group: Optional[str] = None

    @field_validator("retry", "re_attempt", mode="before")
    @classmethod
    def _policy_as_mapping(cls, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump()
        return value

    @field_validator("retry", "re_attempt", mode="after")
    @classmethod
    def _overrides_within_bounds(cls, value: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
        # Falsy entries fall back to defaults when applied; only the others are checked
        if value:
            given = {
                key: item for key, item in value.items()
                if key in RetryPolicy.model_fields and item
            }
            try:
                RetryPolicy.model_validate({**_PLACEHOLDER_POLICY, **given})
            except ValidationError as e:
                raise ValueError(f"policy override out of bounds: {e.errors()}") from e
        return value

    def setter_items(self) -> list[tuple[str, Any]]:
        """Bundle entries paired with the orchestrator setter that applies them."""
        return [
            ("retry", self.retry),
            ("re_attempt", self.re_attempt),
            ("group", self.group),
        ]


class CallOptions(BaseModel):
    """
    Accumulated configuration for exactly one logical call.

    `request` is opaque and passed untouched to the executor.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    request: Any = None
    retry: Optional[RetryPolicy] = None
    re_attempt: Optional[ReAttemptPolicy] = None
    group: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    """
    Interim progress payload, sent once at the retry -> re-attempt transition.

    Attributes:
        message: Human-readable failure message of the retry phase
        error: Last error raised by the executor during the retry phase
    """

    message: str
    error: BaseException
