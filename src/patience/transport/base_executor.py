"""
Abstract base executor.

Defines the interface that executors (HTTP, gRPC, test doubles, etc.) adhere
to. The orchestrator only needs an async callable, so plain coroutine
functions work too; subclassing BaseExecutor adds logging and lifecycle.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

Executor = Callable[[Any], Awaitable[Any]]


class BaseExecutor(ABC):
    """
    Abstract base class for executors.

    Responsibilities:
    - Perform exactly one try of the described request
    - Return the response, or raise on failure

    Does NOT handle:
    - Retries, delays or group blocking (that's RetryOrchestrator's job)
    """

    def __init__(self, timeout: float = 30.0, **kwargs):
        """
        Initialize base executor.

        Args:
            timeout: Default request timeout in seconds
            **kwargs: Additional implementation-specific config
        """
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized executor",
            executor_class=self.__class__.__name__,
            timeout=timeout,
        )

    @abstractmethod
    async def execute(self, descriptor: Any) -> Any:
        """
        Perform the request described by `descriptor` once.

        Raises:
            TransportError: Or any other exception signalling a failed try
        """
        pass

    async def aclose(self) -> None:
        """Release resources held by the executor."""
        pass

    async def __call__(self, descriptor: Any) -> Any:
        return await self.execute(descriptor)

    async def __aenter__(self) -> "BaseExecutor":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
