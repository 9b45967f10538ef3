"""
Client facade.

A Patience client owns the collaborators that must be shared by every call
it makes (blocked groups, strategies, executor, event bus) and hands out
fresh orchestrators bound to them. Create one client per process, or one
per independent set of endpoints.
"""

from typing import Any, Coroutine, Literal, Mapping, Optional, Union

import httpx
import structlog

from patience import logging_config
from patience.config import Settings, settings as default_settings
from patience.events.bus import EventBus, EventPublisher
from patience.models.policies import Strategy
from patience.registry.blocked_groups import BlockedGroupRegistry
from patience.registry.strategies import StrategyRegistry
from patience.retry.bounded import SleepFn
from patience.retry.engine import NotifyFn, RetryOrchestrator
from patience.transport.base_executor import Executor
from patience.transport.httpx_executor import HttpxExecutor

logger = structlog.get_logger(__name__)


class Patience:
    """
    Entry point holding shared retry state.

    Args:
        executor: Async callable performing one try (default: HttpxExecutor)
        settings: Library settings (default: environment-loaded settings)
        blocked_groups: Shared blocked-group registry
        strategies: Shared strategy registry (built-ins included by default)
        events: Lifecycle event publisher (default: a new EventBus)
        sleep: Awaitable sleep used between tries
        configure_logging: Install patience's log handler from LOG_LEVEL and ENVIRONMENT
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        settings: Optional[Settings] = None,
        blocked_groups: Optional[BlockedGroupRegistry] = None,
        strategies: Optional[StrategyRegistry] = None,
        events: Optional[EventPublisher] = None,
        sleep: Optional[SleepFn] = None,
        configure_logging: bool = False,
    ):
        self.settings = settings or default_settings
        if configure_logging:
            logging_config.configure_logging(self.settings)
        self._owns_executor = executor is None
        self.executor = executor or HttpxExecutor(
            timeout=self.settings.HTTP_TIMEOUT,
            connection_limits=httpx.Limits(
                max_keepalive_connections=self.settings.HTTP_MAX_CONNECTIONS,
                max_connections=self.settings.HTTP_MAX_CONNECTIONS,
            ),
        )
        self.blocked_groups = blocked_groups if blocked_groups is not None else BlockedGroupRegistry()
        self.strategies = strategies if strategies is not None else StrategyRegistry()
        self.events = events if events is not None else EventBus()
        self.sleep = sleep

        logger.info(
            "Patience client initialized",
            executor=type(self.executor).__name__,
            strategies=self.strategies.names(),
        )

    def orchestrator(self) -> RetryOrchestrator:
        """A fresh, unconfigured orchestrator bound to this client's state."""
        return RetryOrchestrator(
            executor=self.executor,
            blocked_groups=self.blocked_groups,
            strategies=self.strategies,
            events=self.events,
            settings=self.settings,
            sleep=self.sleep,
        )

    def request(self, descriptor: Any) -> RetryOrchestrator:
        """Start configuring a call for `descriptor`."""
        return self.orchestrator().request(descriptor)

    def add_strategy(self, name: str, bundle: Union[Strategy, Mapping[str, Any]]) -> bool:
        return self.strategies.add(name, bundle)

    def run_strategy(
        self,
        name: str,
        descriptor: Any,
        on_notify: Optional[NotifyFn] = None,
    ) -> Union[Coroutine[Any, Any, Any], Literal[False]]:
        """Run `descriptor` under the named strategy (False if unknown)."""
        return self.request(descriptor).run_strategy(name, on_notify=on_notify)

    async def aclose(self) -> None:
        """Close the executor if this client created it."""
        if self._owns_executor and isinstance(self.executor, HttpxExecutor):
            await self.executor.aclose()

    async def __aenter__(self) -> "Patience":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
