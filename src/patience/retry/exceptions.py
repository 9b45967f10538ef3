"""
Retry orchestrator exceptions.

Every failure of `RetryOrchestrator.run()` surfaces as one of these when the
returned coroutine is awaited. Each carries the human-readable `message`
and the underlying `error` (the executor's last error, when there is one).
"""

from typing import Optional


class PatienceError(Exception):
    """
    Base exception for all orchestrator failures.

    Attributes:
        message: Human-readable failure message
        error: Underlying cause (None when no executor try was made)
        group: Group the failed call belonged to
    """

    def __init__(
        self,
        message: str,
        error: Optional[BaseException] = None,
        group: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error = error
        self.group = group

    def as_dict(self) -> dict:
        """Rejection payload in `{message, error}` form."""
        payload: dict = {"message": self.message}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class BlockedGroupError(PatienceError):
    """
    Raised when the call's group is currently under escalation.

    No executor try is made.
    """
    pass


class RetryExhaustedError(PatienceError):
    """Raised when tier-1 retries are exhausted and no re-attempt is configured."""
    pass


class ReAttemptExhaustedError(PatienceError):
    """Raised when tier-2 re-attempts are exhausted."""
    pass


class ConfigurationError(PatienceError):
    """
    Raised when `run()` is awaited without a request descriptor, or when no
    group was set and none can be derived from the descriptor's url.
    """
    pass
