"""
Executors: the collaborators that actually perform a described request.

The orchestrator accepts any async callable taking a request descriptor.
`HttpxExecutor` is the default HTTP implementation.
"""

from patience.transport.base_executor import BaseExecutor, Executor
from patience.transport.exceptions import (
    TransportConnectionError,
    TransportError,
    TransportStatusError,
    TransportTimeoutError,
)
from patience.transport.httpx_executor import HttpxExecutor

__all__ = [
    "BaseExecutor",
    "Executor",
    "HttpxExecutor",
    "TransportError",
    "TransportConnectionError",
    "TransportTimeoutError",
    "TransportStatusError",
]
