"""
Retry orchestrator with two-tier failure escalation.

This module implements RetryOrchestrator, which wraps an executor call in:

    1. Retry: up to `retry.max_attempts` tries with a short interval
    2. Re-attempt: once retries are exhausted (and a re-attempt policy is
       set), the call's group is blocked and up to
       `re_attempt.max_attempts - 1` further tries are made with a longer
       interval. The group is unblocked when this phase ends.

While a group is blocked, every other call for the same group fails fast
with BlockedGroupError without reaching the executor.

Usage:
    orchestrator = RetryOrchestrator(executor, blocked_groups, strategies)
    response = await (
        orchestrator.request(descriptor)
        .retry({"max_attempts": 3})
        .re_attempt()
        .run()
    )
"""

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Literal, Mapping, Optional, Union

import structlog

from patience.config import Settings, settings as default_settings
from patience.events.bus import EventBus, EventPublisher
from patience.models.enums import LifecycleEvent, Phase
from patience.models.policies import CallOptions, Notification, RetryPolicy, Strategy
from patience.models.requests import target_of
from patience.monitoring.metrics import (
    blocked_rejections_total,
    escalations_total,
    phase_outcomes_total,
    tries_total,
)
from patience.registry.blocked_groups import BlockedGroupRegistry
from patience.registry.strategies import StrategyRegistry
from patience.retry import messages
from patience.retry.bounded import BoundedRetryOptions, SleepFn, bounded_retry
from patience.retry.exceptions import (
    BlockedGroupError,
    ConfigurationError,
    ReAttemptExhaustedError,
    RetryExhaustedError,
)
from patience.retry.resolver import PolicyInput, resolve
from patience.transport.base_executor import Executor

logger = structlog.get_logger(__name__)

NotifyFn = Callable[[Notification], None]


def to_bounded_options(policy: RetryPolicy, consumed: int = 0) -> BoundedRetryOptions:
    """
    Translate a tier policy into bounded-retry options.

    Args:
        policy: Retry or re-attempt policy
        consumed: Tries already accounted for before the phase starts
            (1 for re-attempts, whose first try is the exhausted retry phase)
    """
    return BoundedRetryOptions(
        max_retry=max(policy.max_attempts - consumed, 0),
        interval=policy.interval,
        interval_multiplicator=policy.interval_multiplier,
    )


class RetryOrchestrator:
    """
    Fluent, immutable configuration of one logical call, plus its execution.

    Every setter returns a new orchestrator sharing the same collaborators,
    so a partially configured orchestrator can be reused as a template
    without two calls interfering.

    Attributes:
        executor: Async callable performing one try of a request descriptor
        blocked_groups: Registry of groups under escalation (shared)
        strategies: Registry of named strategies (shared)
        events: Lifecycle event publisher
        settings: Source of the library default policies
        options: Accumulated call options
    """

    def __init__(
        self,
        executor: Executor,
        blocked_groups: BlockedGroupRegistry,
        strategies: StrategyRegistry,
        events: Optional[EventPublisher] = None,
        settings: Optional[Settings] = None,
        sleep: Optional[SleepFn] = None,
        options: Optional[CallOptions] = None,
    ):
        self.executor = executor
        self.blocked_groups = blocked_groups
        self.strategies = strategies
        self.events = events if events is not None else EventBus()
        self.settings = settings or default_settings
        self.sleep = sleep or asyncio.sleep
        self.options = options or CallOptions()

    def _with(self, **changes: Any) -> "RetryOrchestrator":
        return RetryOrchestrator(
            executor=self.executor,
            blocked_groups=self.blocked_groups,
            strategies=self.strategies,
            events=self.events,
            settings=self.settings,
            sleep=self.sleep,
            options=self.options.model_copy(update=changes),
        )

    # ------------------------------------------------------------------
    # Fluent configuration
    # ------------------------------------------------------------------

    def retry(self, policy: PolicyInput = None) -> "RetryOrchestrator":
        """Set the tier-1 policy; missing or falsy keys fall back to defaults."""
        return self._with(retry=resolve(policy, self.settings.retry_defaults()))

    def re_attempt(self, policy: PolicyInput = None) -> "RetryOrchestrator":
        """Enable the tier-2 phase; missing or falsy keys fall back to defaults."""
        return self._with(re_attempt=resolve(policy, self.settings.re_attempt_defaults()))

    def request(self, descriptor: Any) -> "RetryOrchestrator":
        """Set the request descriptor handed to the executor."""
        return self._with(request=descriptor)

    def group(self, name: str) -> "RetryOrchestrator":
        """Set the group explicitly instead of deriving it from the request target."""
        return self._with(group=name)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def add_strategy(self, name: str, bundle: Union[Strategy, Mapping[str, Any]]) -> bool:
        """Register a named strategy; False if the name is taken."""
        return self.strategies.add(name, bundle)

    def apply_strategy(self, strategy: Strategy) -> "RetryOrchestrator":
        """Replay a strategy's entries through the matching setters."""
        configured = self
        for setter, value in strategy.setter_items():
            # Empty mappings still apply defaults; other falsy entries are skipped
            if value is None or (not value and not isinstance(value, Mapping)):
                continue
            configured = getattr(configured, setter)(value)
        return configured

    def run_strategy(
        self,
        name: str,
        on_notify: Optional[NotifyFn] = None,
    ) -> Union[Coroutine[Any, Any, Any], Literal[False]]:
        """
        Apply the named strategy and run.

        Unlike `run()`, an unknown strategy is reported immediately: the
        error is logged and False is returned instead of a coroutine.
        Callers must check the return value before awaiting it.
        """
        strategy = self.strategies.get(name)
        if strategy is None:
            logger.error("Retry strategy not found", strategy=name)
            return False

        return self.apply_strategy(strategy).run(on_notify=on_notify)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def configure(self) -> CallOptions:
        """
        Finalize the call options.

        Fills in the default retry policy and derives the group from the
        request target when either is missing.

        Raises:
            ConfigurationError: If no request descriptor was set, or no group
                was set and none can be derived
        """
        options = self.options
        if options.request is None:
            raise ConfigurationError("A request descriptor must be set before run()")

        changes: dict[str, Any] = {}
        if options.retry is None:
            changes["retry"] = self.settings.retry_defaults()
        if options.group is None:
            changes["group"] = target_of(options.request)
            if changes["group"] is None:
                raise ConfigurationError(
                    "No group set and the request descriptor has no url to derive one from"
                )

        return options.model_copy(update=changes) if changes else options

    async def run(self, on_notify: Optional[NotifyFn] = None) -> Any:
        """
        Execute the call under the configured policies.

        Args:
            on_notify: Called once with a Notification when the retry phase
                is exhausted and the re-attempt phase begins

        Returns:
            The executor's result from the first successful try

        Raises:
            BlockedGroupError: The group is blocked; the executor was not called
            RetryExhaustedError: Retries exhausted, no re-attempt configured
            ReAttemptExhaustedError: Re-attempts exhausted
            ConfigurationError: No request descriptor, or no derivable group
        """
        options = self.configure()
        log = logger.bind(group=options.group)

        if self.blocked_groups.contains(options.group):
            blocked_rejections_total.inc()
            log.warning("Request rejected, group is blocked")
            raise BlockedGroupError(messages.REQUESTS_BLOCKED, group=options.group)

        return await self._do_retry(options, log, on_notify)

    def _try(self, options: CallOptions, phase: Phase, log) -> Callable[[], Awaitable[Any]]:
        """Build the zero-argument action for one executor try."""
        attempt = 0

        async def action() -> Any:
            nonlocal attempt
            attempt += 1
            try:
                result = await self.executor(options.request)
            except Exception as e:
                tries_total.labels(phase=phase.value, success="false").inc()
                log.warning(
                    "Try failed",
                    phase=phase.value,
                    attempt=attempt,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise
            tries_total.labels(phase=phase.value, success="true").inc()
            log.debug("Try succeeded", phase=phase.value, attempt=attempt)
            return result

        return action

    async def _do_retry(self, options: CallOptions, log, on_notify: Optional[NotifyFn]) -> Any:
        log.info(
            "Starting retry phase",
            max_attempts=options.retry.max_attempts,
            interval=options.retry.interval,
            interval_multiplier=options.retry.interval_multiplier,
        )

        try:
            result = await bounded_retry(
                self._try(options, Phase.RETRY, log),
                to_bounded_options(options.retry),
                sleep=self.sleep,
            )
        except Exception as e:
            phase_outcomes_total.labels(phase=Phase.RETRY.value, outcome="exhausted").inc()
            self.events.publish(LifecycleEvent.RETRIES_FAILED, messages.RETRY_FAILED)

            if options.re_attempt is None:
                log.error("Retry phase exhausted", error_type=type(e).__name__)
                raise RetryExhaustedError(messages.RETRY_FAILED, error=e, group=options.group) from e

            log.warning("Retry phase exhausted, escalating to re-attempts", error_type=type(e).__name__)
            if on_notify is not None:
                try:
                    on_notify(Notification(message=messages.RETRY_FAILED, error=e))
                except Exception:
                    log.exception("Progress callback failed")

            retry_error = e
        else:
            phase_outcomes_total.labels(phase=Phase.RETRY.value, outcome="resolved").inc()
            return result

        escalations_total.inc()
        self.blocked_groups.add(options.group)
        return await self._do_re_attempt(options, log, retry_error)

    async def _do_re_attempt(self, options: CallOptions, log, retry_error: Exception) -> Any:
        bounded = to_bounded_options(options.re_attempt, consumed=1)
        log.info(
            "Starting re-attempt phase",
            tries=bounded.max_retry,
            interval=bounded.interval,
            interval_multiplier=bounded.interval_multiplicator,
        )

        try:
            if bounded.max_retry == 0:
                # Budget fully consumed by the retry phase
                raise retry_error
            result = await bounded_retry(
                self._try(options, Phase.RE_ATTEMPT, log),
                bounded,
                sleep=self.sleep,
            )
        except Exception as e:
            phase_outcomes_total.labels(phase=Phase.RE_ATTEMPT.value, outcome="exhausted").inc()
            self.blocked_groups.remove(options.group)
            self.events.publish(LifecycleEvent.RE_ATTEMPTS_FAILED, messages.RE_ATTEMPTS_FAILED)
            log.error("Re-attempt phase exhausted", error_type=type(e).__name__)
            raise ReAttemptExhaustedError(
                messages.RE_ATTEMPTS_FAILED, error=e, group=options.group
            ) from e
        finally:
            # Cancellation must not leave the group blocked
            self.blocked_groups.remove(options.group)

        phase_outcomes_total.labels(phase=Phase.RE_ATTEMPT.value, outcome="resolved").inc()
        self.events.publish(LifecycleEvent.RE_ATTEMPT_SUCCESSFUL, messages.RE_ATTEMPT_SUCCEEDED)
        log.info("Re-attempt phase succeeded")
        return result
