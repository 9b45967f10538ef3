"""Shared test fixtures and configuration for all tests.

Provides isolated registries, a no-wait sleep and executor doubles so that
orchestrator tests never touch the network or wait in real time.
"""

from unittest.mock import AsyncMock

import pytest

from patience.config import Settings
from patience.events.bus import EventBus
from patience.models.requests import RequestDescriptor
from patience.registry.blocked_groups import BlockedGroupRegistry
from patience.registry.strategies import StrategyRegistry
from patience.retry.engine import RetryOrchestrator
from patience.transport.exceptions import TransportConnectionError


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the library's documented defaults, independent of the environment."""
    return Settings(
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        RETRY_MAX_ATTEMPTS=2,
        RETRY_INTERVAL=0.1,
        RETRY_INTERVAL_MULTIPLIER=1.0,
        REATTEMPT_MAX_ATTEMPTS=3,
        REATTEMPT_INTERVAL=1.0,
        REATTEMPT_INTERVAL_MULTIPLIER=1.0,
        HTTP_TIMEOUT=5.0,
    )


@pytest.fixture
def blocked_groups() -> BlockedGroupRegistry:
    return BlockedGroupRegistry()


@pytest.fixture
def strategies() -> StrategyRegistry:
    return StrategyRegistry()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def no_wait_sleep() -> AsyncMock:
    """Sleep double recording requested delays without waiting."""
    return AsyncMock(return_value=None)


@pytest.fixture
def descriptor() -> RequestDescriptor:
    return RequestDescriptor(method="GET", url="http://api.example.com/orders")


@pytest.fixture
def failing_executor() -> AsyncMock:
    """Executor that fails on every try."""
    return AsyncMock(side_effect=TransportConnectionError("connection refused"))


@pytest.fixture
def create_orchestrator(test_settings, blocked_groups, strategies, event_bus, no_wait_sleep):
    """Factory fixture building orchestrators that share this test's registries.

    Usage:
        def test_something(create_orchestrator):
            orchestrator = create_orchestrator(executor)
    """
    def _create(executor) -> RetryOrchestrator:
        return RetryOrchestrator(
            executor=executor,
            blocked_groups=blocked_groups,
            strategies=strategies,
            events=event_bus,
            settings=test_settings,
            sleep=no_wait_sleep,
        )

    return _create


@pytest.fixture
def recorded_events(event_bus):
    """List receiving every lifecycle event published on the test bus."""
    received: list[tuple[str, str]] = []
    for topic in ("retriesFailed", "reAttemptsFailed", "reAttemptSuccessful"):
        event_bus.subscribe(topic, lambda name, message: received.append((name, message)))
    return received
