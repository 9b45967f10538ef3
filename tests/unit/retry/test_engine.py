"""
Unit tests for RetryOrchestrator.

Covers configuration, the retry phase, escalation into the re-attempt
phase, group blocking and strategy application.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from patience.models.enums import LifecycleEvent
from patience.models.policies import Notification, ReAttemptPolicy, RetryPolicy, Strategy
from patience.retry.engine import RetryOrchestrator, to_bounded_options
from patience.retry.exceptions import (
    BlockedGroupError,
    ConfigurationError,
    ReAttemptExhaustedError,
    RetryExhaustedError,
)
from patience.transport.exceptions import TransportConnectionError


# ============================================================================
# Configuration
# ============================================================================


def test_setters_return_new_orchestrators(create_orchestrator, descriptor):
    """Setters never mutate the orchestrator they are called on."""
    base = create_orchestrator(AsyncMock()).request(descriptor)
    with_retry = base.retry({"max_attempts": 4})
    with_group = base.group("orders")

    assert base.options.retry is None
    assert base.options.group is None
    assert with_retry.options.retry.max_attempts == 4
    assert with_retry.options.group is None
    assert with_group.options.group == "orders"
    assert with_group.options.retry is None


def test_setters_resolve_against_settings_defaults(create_orchestrator, descriptor):
    orchestrator = create_orchestrator(AsyncMock()).request(descriptor).retry().re_attempt({"max_attempts": 7})

    assert orchestrator.options.retry == RetryPolicy(max_attempts=2, interval=0.1, interval_multiplier=1.0)
    assert orchestrator.options.re_attempt == ReAttemptPolicy(max_attempts=7, interval=1.0, interval_multiplier=1.0)


def test_configure_fills_defaults_and_derives_group(create_orchestrator, descriptor):
    options = create_orchestrator(AsyncMock()).request(descriptor).configure()

    assert options.retry.max_attempts == 2
    assert options.re_attempt is None
    assert options.group == "http://api.example.com/orders"


def test_configure_derives_group_from_mapping(create_orchestrator):
    options = create_orchestrator(AsyncMock()).request({"url": "http://a/b"}).configure()
    assert options.group == "http://a/b"


def test_configure_keeps_explicit_group(create_orchestrator, descriptor):
    options = create_orchestrator(AsyncMock()).request(descriptor).group("orders").configure()
    assert options.group == "orders"


def test_to_bounded_options_translation():
    retry = RetryPolicy(max_attempts=3, interval=0.1, interval_multiplier=1.5)
    re_attempt = ReAttemptPolicy(max_attempts=3, interval=1.0, interval_multiplier=2.0)

    assert to_bounded_options(retry).max_retry == 3
    assert to_bounded_options(retry).interval_multiplicator == 1.5
    assert to_bounded_options(re_attempt, consumed=1).max_retry == 2


@pytest.mark.asyncio
async def test_run_without_request_raises_configuration_error(create_orchestrator):
    executor = AsyncMock()
    coroutine = create_orchestrator(executor).run()

    with pytest.raises(ConfigurationError):
        await coroutine
    executor.assert_not_awaited()


# ============================================================================
# Retry phase
# ============================================================================


@pytest.mark.asyncio
async def test_success_on_third_try(create_orchestrator, descriptor, blocked_groups, no_wait_sleep):
    """Fails twice, succeeds on try 3 with max_attempts=3; no re-attempt."""
    error = TransportConnectionError("down")
    executor = AsyncMock(side_effect=[error, error, "third"])
    orchestrator = (
        create_orchestrator(executor)
        .request(descriptor)
        .retry({"max_attempts": 3})
        .re_attempt()
    )
    blocked_groups.add = MagicMock(wraps=blocked_groups.add)

    result = await orchestrator.run()

    assert result == "third"
    assert executor.await_count == 3
    blocked_groups.add.assert_not_called()
    assert no_wait_sleep.await_count == 2


@pytest.mark.asyncio
async def test_executor_receives_descriptor_untouched(create_orchestrator, descriptor):
    executor = AsyncMock(return_value="ok")

    await create_orchestrator(executor).request(descriptor).run()

    executor.assert_awaited_once_with(descriptor)


@pytest.mark.asyncio
async def test_retry_delays_follow_multiplier(create_orchestrator, descriptor, failing_executor, no_wait_sleep):
    orchestrator = (
        create_orchestrator(failing_executor)
        .request(descriptor)
        .retry({"max_attempts": 4, "interval": 0.2, "interval_multiplier": 2})
    )

    with pytest.raises(RetryExhaustedError):
        await orchestrator.run()

    delays = [call.args[0] for call in no_wait_sleep.await_args_list]
    assert delays == pytest.approx([0.2, 0.4, 0.8])


@pytest.mark.asyncio
async def test_retry_exhausted_without_re_attempt(
    create_orchestrator, descriptor, failing_executor, blocked_groups, recorded_events
):
    """Always failing, max_attempts=2, no re-attempt: rejects after 2 calls."""
    orchestrator = create_orchestrator(failing_executor).request(descriptor).retry({"max_attempts": 2})
    blocked_groups.add = MagicMock(wraps=blocked_groups.add)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await orchestrator.run()

    assert exc_info.value.message == "Request failed."
    assert exc_info.value.error is failing_executor.side_effect
    assert exc_info.value.as_dict() == {"message": "Request failed.", "error": failing_executor.side_effect}
    assert failing_executor.await_count == 2
    blocked_groups.add.assert_not_called()
    assert recorded_events == [("retriesFailed", "Request failed.")]


# ============================================================================
# Re-attempt phase
# ============================================================================


@pytest.mark.asyncio
async def test_re_attempts_exhausted(create_orchestrator, descriptor, blocked_groups, recorded_events):
    """retry=2, re_attempt=3: 2 + 2 calls, group blocked during re-attempts, unblocked after."""
    group = "http://api.example.com/orders"
    blocked_during_call: list[bool] = []

    async def executor(request):
        blocked_during_call.append(blocked_groups.contains(group))
        raise TransportConnectionError("still down")

    orchestrator = (
        create_orchestrator(executor)
        .request(descriptor)
        .retry({"max_attempts": 2})
        .re_attempt({"max_attempts": 3})
    )

    with pytest.raises(ReAttemptExhaustedError) as exc_info:
        await orchestrator.run()

    assert exc_info.value.message == "Re-attempts of request failed."
    assert isinstance(exc_info.value.error, TransportConnectionError)
    assert blocked_during_call == [False, False, True, True]
    assert not blocked_groups.contains(group)
    assert recorded_events == [
        ("retriesFailed", "Request failed."),
        ("reAttemptsFailed", "Re-attempts of request failed."),
    ]


@pytest.mark.asyncio
async def test_re_attempt_success_unblocks_group(create_orchestrator, descriptor, blocked_groups, recorded_events):
    error = TransportConnectionError("down")
    executor = AsyncMock(side_effect=[error, error, "recovered"])
    orchestrator = (
        create_orchestrator(executor)
        .request(descriptor)
        .group("orders")
        .retry({"max_attempts": 2})
        .re_attempt({"max_attempts": 5})
    )

    result = await orchestrator.run()

    assert result == "recovered"
    assert executor.await_count == 3
    assert not blocked_groups.contains("orders")
    assert recorded_events[-1] == ("reAttemptSuccessful", "Re-attempt of request succeeded.")


@pytest.mark.asyncio
async def test_notification_sent_once_at_escalation(create_orchestrator, descriptor, failing_executor):
    notifications: list[Notification] = []
    orchestrator = (
        create_orchestrator(failing_executor)
        .request(descriptor)
        .retry({"max_attempts": 2})
        .re_attempt({"max_attempts": 3})
    )

    with pytest.raises(ReAttemptExhaustedError):
        await orchestrator.run(on_notify=notifications.append)

    assert len(notifications) == 1
    assert notifications[0].message == "Request failed."
    assert notifications[0].error is failing_executor.side_effect


@pytest.mark.asyncio
async def test_single_re_attempt_budget_makes_no_further_calls(
    create_orchestrator, descriptor, failing_executor, blocked_groups
):
    """re_attempt.max_attempts=1 is fully consumed by the retry phase."""
    orchestrator = (
        create_orchestrator(failing_executor)
        .request(descriptor)
        .retry({"max_attempts": 2})
        .re_attempt({"max_attempts": 1})
    )

    with pytest.raises(ReAttemptExhaustedError) as exc_info:
        await orchestrator.run()

    assert failing_executor.await_count == 2
    assert exc_info.value.error is failing_executor.side_effect
    assert len(blocked_groups) == 0


@pytest.mark.asyncio
async def test_re_attempt_delays_use_re_attempt_policy(create_orchestrator, descriptor, failing_executor, no_wait_sleep):
    orchestrator = (
        create_orchestrator(failing_executor)
        .request(descriptor)
        .retry({"max_attempts": 2, "interval": 0.1})
        .re_attempt({"max_attempts": 4, "interval": 1.0, "interval_multiplier": 1.5})
    )

    with pytest.raises(ReAttemptExhaustedError):
        await orchestrator.run()

    delays = [call.args[0] for call in no_wait_sleep.await_args_list]
    assert delays == pytest.approx([0.1, 1.0, 1.5])


# ============================================================================
# Blocking
# ============================================================================


@pytest.mark.asyncio
async def test_blocked_group_rejects_without_calling_executor(create_orchestrator, descriptor, blocked_groups):
    blocked_groups.add("orders")
    executor = AsyncMock(return_value="ok")

    with pytest.raises(BlockedGroupError) as exc_info:
        await create_orchestrator(executor).request(descriptor).group("orders").run()

    assert exc_info.value.message == "Requests are currently blocked by Retry library."
    assert exc_info.value.error is None
    assert exc_info.value.as_dict() == {"message": "Requests are currently blocked by Retry library."}
    executor.assert_not_awaited()


@pytest.mark.asyncio
async def test_concurrent_call_fails_fast_while_group_escalated(create_orchestrator, descriptor, blocked_groups):
    """Second call on group "g" rejects immediately while the first is re-attempting."""
    gate = asyncio.Event()
    re_attempting = asyncio.Event()
    calls = 0

    async def slow_recovery(request):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise TransportConnectionError("down")
        re_attempting.set()
        await gate.wait()
        return "recovered"

    first = asyncio.create_task(
        create_orchestrator(slow_recovery)
        .request(descriptor)
        .group("g")
        .retry({"max_attempts": 1})
        .re_attempt({"max_attempts": 2})
        .run()
    )
    await re_attempting.wait()
    assert blocked_groups.contains("g")

    second_executor = AsyncMock(return_value="unused")
    with pytest.raises(BlockedGroupError):
        await create_orchestrator(second_executor).request(descriptor).group("g").run()
    second_executor.assert_not_awaited()

    gate.set()
    assert await first == "recovered"
    assert not blocked_groups.contains("g")


@pytest.mark.asyncio
async def test_cancellation_during_re_attempt_unblocks_group(create_orchestrator, descriptor, blocked_groups):
    re_attempting = asyncio.Event()
    calls = 0

    async def hanging(request):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise TransportConnectionError("down")
        re_attempting.set()
        await asyncio.Event().wait()

    task = asyncio.create_task(
        create_orchestrator(hanging)
        .request(descriptor)
        .group("g")
        .retry({"max_attempts": 1})
        .re_attempt({"max_attempts": 2})
        .run()
    )
    await re_attempting.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert not blocked_groups.contains("g")


# ============================================================================
# Strategies
# ============================================================================


def test_run_strategy_unknown_returns_false(create_orchestrator, descriptor):
    executor = AsyncMock()

    result = create_orchestrator(executor).request(descriptor).run_strategy("missing")

    assert result is False
    executor.assert_not_awaited()


def test_apply_builtin_resilient_strategy(create_orchestrator, descriptor, strategies):
    orchestrator = create_orchestrator(AsyncMock()).request(descriptor)

    configured = orchestrator.apply_strategy(strategies.get("resilient"))

    assert configured.options.retry == RetryPolicy(max_attempts=5, interval=0.1, interval_multiplier=1.0)
    assert configured.options.re_attempt == ReAttemptPolicy(max_attempts=10, interval=1.0, interval_multiplier=1.0)
    assert orchestrator.options.retry is None


@pytest.mark.asyncio
async def test_run_strategy_resilient_counts_tries(create_orchestrator, descriptor, failing_executor):
    """resilient: 5 retries, then 10 - 1 re-attempts."""
    coroutine = create_orchestrator(failing_executor).request(descriptor).run_strategy("resilient")

    with pytest.raises(ReAttemptExhaustedError):
        await coroutine
    assert failing_executor.await_count == 14


@pytest.mark.asyncio
async def test_run_strategy_applies_group(create_orchestrator, descriptor, blocked_groups):
    create_orchestrator(AsyncMock()).add_strategy(
        "orders-strategy", {"retry": {"max_attempts": 1}, "group": "orders"}
    )
    blocked_groups.add("orders")
    executor = AsyncMock(return_value="ok")

    with pytest.raises(BlockedGroupError):
        await create_orchestrator(executor).request(descriptor).run_strategy("orders-strategy")
    executor.assert_not_awaited()


@pytest.mark.asyncio
async def test_retries_failed_event_published_on_escalation(create_orchestrator, descriptor, event_bus):
    handler = MagicMock()
    event_bus.subscribe(LifecycleEvent.RETRIES_FAILED, handler)
    error = TransportConnectionError("down")
    executor = AsyncMock(side_effect=[error, "ok"])

    result = await create_orchestrator(executor).request(descriptor).retry({"max_attempts": 1}).re_attempt().run()

    assert result == "ok"
    handler.assert_called_once_with("retriesFailed", "Request failed.")


@pytest.mark.asyncio
async def test_run_without_derivable_group_raises_configuration_error(create_orchestrator):
    executor = AsyncMock()

    with pytest.raises(ConfigurationError):
        await create_orchestrator(executor).request({"method": "GET"}).run()
    executor.assert_not_awaited()


def test_apply_strategy_skips_empty_group(create_orchestrator, descriptor):
    strategy = Strategy(retry={"max_attempts": 3}, group="")

    options = create_orchestrator(AsyncMock()).request(descriptor).apply_strategy(strategy).configure()

    assert options.group == "http://api.example.com/orders"
    assert options.retry.max_attempts == 3


def test_apply_strategy_empty_policy_mapping_applies_defaults(create_orchestrator, descriptor):
    configured = create_orchestrator(AsyncMock()).request(descriptor).apply_strategy(Strategy(re_attempt={}))

    assert configured.options.re_attempt == ReAttemptPolicy(max_attempts=3, interval=1.0, interval_multiplier=1.0)


@pytest.mark.asyncio
async def test_failing_progress_callback_does_not_stop_escalation(create_orchestrator, descriptor, blocked_groups):
    blocked_during_re_attempt: list[bool] = []
    calls = 0

    async def executor(request):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise TransportConnectionError("down")
        blocked_during_re_attempt.append(blocked_groups.contains("orders"))
        return "recovered"

    def broken_callback(notification):
        raise RuntimeError("listener bug")

    result = await (
        create_orchestrator(executor)
        .request(descriptor)
        .group("orders")
        .retry({"max_attempts": 1})
        .re_attempt({"max_attempts": 2})
        .run(on_notify=broken_callback)
    )

    assert result == "recovered"
    assert blocked_during_re_attempt == [True]
    assert not blocked_groups.contains("orders")


@pytest.mark.asyncio
async def test_run_strategy_on_registered_strategy_returns_coroutine(create_orchestrator, descriptor):
    orchestrator = create_orchestrator(AsyncMock(return_value="ok")).request(descriptor)
    orchestrator.add_strategy("quick", {"retry": {"max_attempts": 1}})

    coroutine = orchestrator.run_strategy("quick")

    assert asyncio.iscoroutine(coroutine)
    assert await coroutine == "ok"
