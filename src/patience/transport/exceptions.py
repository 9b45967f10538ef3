"""
Custom exceptions for the transport layer.

Executors raise these so that callers inspecting `PatienceError.error` can
tell network failures from error responses without depending on httpx.
"""


class TransportError(Exception):
    """
    Base exception for all executor errors.

    All transport-specific exceptions inherit from this to allow catching
    any executor failure with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportConnectionError(TransportError):
    """
    Raised when the target cannot be reached.

    Includes refused connections, DNS failures and protocol errors.
    """
    pass


class TransportTimeoutError(TransportConnectionError):
    """Raised when the request exceeds its timeout."""
    pass


class TransportStatusError(TransportError):
    """
    Raised when the target answers with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response
        response: The httpx.Response, for callers needing headers or body
    """
    def __init__(self, message: str, status_code: int, response=None, details: dict | None = None):
        super().__init__(message, details)
        self.status_code = status_code
        self.response = response
