"""Default library message texts."""

RETRY_FAILED = "Request failed."
RE_ATTEMPTS_FAILED = "Re-attempts of request failed."
RE_ATTEMPT_SUCCEEDED = "Re-attempt of request succeeded."
REQUESTS_BLOCKED = "Requests are currently blocked by Retry library."
