"""
HTTP executor built on httpx.

Performs one HTTP request per call using a persistent AsyncClient for
connection pooling. Non-2xx responses count as failures, so they are
retried by the orchestrator like network errors.
"""

import time
from typing import Any, Mapping, Optional

import httpx
import structlog

from patience.models.requests import RequestDescriptor
from patience.transport.base_executor import BaseExecutor
from patience.transport.exceptions import (
    TransportConnectionError,
    TransportStatusError,
    TransportTimeoutError,
)

logger = structlog.get_logger(__name__)


class HttpxExecutor(BaseExecutor):
    """
    httpx-backed executor for RequestDescriptor (or equivalent mapping).

    Features:
    - Connection pooling via persistent AsyncClient
    - Per-request timeout override from the descriptor
    - httpx errors mapped to TransportError subclasses
    """

    def __init__(
        self,
        timeout: float = 30.0,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize httpx executor.

        Args:
            timeout: Default request timeout in seconds
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
            **kwargs: Additional config
        """
        super().__init__(timeout, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    @staticmethod
    def _as_descriptor(descriptor: Any) -> RequestDescriptor:
        if isinstance(descriptor, RequestDescriptor):
            return descriptor
        if isinstance(descriptor, Mapping):
            return RequestDescriptor.model_validate(descriptor)
        raise TypeError(
            f"HttpxExecutor cannot execute {type(descriptor).__name__}; "
            "pass a RequestDescriptor or a mapping with at least a 'url' key"
        )

    async def execute(self, descriptor: Any) -> httpx.Response:
        """
        Send the described HTTP request.

        Returns:
            The httpx.Response of a 2xx answer

        Raises:
            TransportTimeoutError: Request timed out
            TransportConnectionError: Network-level failure
            TransportStatusError: Non-2xx response
        """
        request = self._as_descriptor(descriptor)
        start_time = time.time()

        client = await self._get_client()
        try:
            response = await client.request(
                request.method,
                request.url,
                params=request.params,
                headers=request.headers,
                json=request.json_body,
                content=request.content,
                timeout=request.timeout or self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning("Request timeout", method=request.method, url=request.url, error=str(e))
            raise TransportTimeoutError(
                f"Request timeout after {request.timeout or self.timeout}s",
                details={"url": request.url, "method": request.method},
            ) from e
        except httpx.TransportError as e:
            logger.warning("Request connection error", method=request.method, url=request.url, error=str(e))
            raise TransportConnectionError(
                f"Failed to reach {request.url}: {e}",
                details={"url": request.url, "method": request.method},
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.is_success:
            logger.warning(
                "Request returned error status",
                method=request.method,
                url=request.url,
                status_code=response.status_code,
                latency_ms=latency_ms,
            )
            raise TransportStatusError(
                f"HTTP {response.status_code} from {request.url}",
                status_code=response.status_code,
                response=response,
                details={"url": request.url, "method": request.method},
            )

        logger.debug(
            "Request succeeded",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return response

    async def aclose(self) -> None:
        """Close the HTTP client and its connection pool."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed httpx AsyncClient")
