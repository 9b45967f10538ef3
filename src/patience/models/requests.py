"""
Request descriptor model.

A descriptor is the caller's description of the action to perform. The
orchestrator never inspects it beyond deriving a default group from its
target URL; it is handed untouched to the executor.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestDescriptor(BaseModel):
    """HTTP request description consumed by the default httpx executor."""
    model_config = ConfigDict(frozen=True)

    method: str = Field(default="GET", description="HTTP method")
    url: str = Field(..., description="Target URL (also the default group)")
    params: Optional[dict[str, Any]] = Field(default=None, description="Query parameters")
    headers: Optional[dict[str, str]] = Field(default=None, description="Request headers")
    json_body: Optional[Any] = Field(default=None, description="JSON-encoded request body")
    content: Optional[bytes] = Field(default=None, description="Raw request body")
    timeout: Optional[float] = Field(default=None, gt=0.0, description="Per-request timeout in seconds")


def target_of(descriptor: Any) -> Optional[str]:
    """
    Return the target identity of a descriptor, used as its default group.

    Works for RequestDescriptor, any object with a `url` attribute, and
    mappings with a "url" key.
    """
    if isinstance(descriptor, Mapping):
        url = descriptor.get("url")
    else:
        url = getattr(descriptor, "url", None)
    return str(url) if url is not None else None
