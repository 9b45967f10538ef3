"""
Strategy registry.

Named strategies are registered once and looked up by name. Registration
under a name that is already taken is refused, so a registered strategy
never changes.

Built-in strategies:
    - resilient: retry {5, 0.1s, x1}, re-attempt {10, 1.0s, x1}
    - exponential-backoff: retry {2, 0.1s, x1.5}, re-attempt {3, 1.0s, x1.5}
"""

import threading
from typing import Any, Mapping, Optional, Union

import structlog

from patience.models.policies import Strategy

logger = structlog.get_logger(__name__)


BUILTIN_STRATEGIES: dict[str, Strategy] = {
    "resilient": Strategy(
        retry={"max_attempts": 5, "interval": 0.1, "interval_multiplier": 1.0},
        re_attempt={"max_attempts": 10, "interval": 1.0, "interval_multiplier": 1.0},
    ),
    "exponential-backoff": Strategy(
        retry={"max_attempts": 2, "interval": 0.1, "interval_multiplier": 1.5},
        re_attempt={"max_attempts": 3, "interval": 1.0, "interval_multiplier": 1.5},
    ),
}


class StrategyRegistry:
    """
    Registry of named strategies.

    Args:
        include_builtins: Pre-register the built-in strategies
    """

    def __init__(self, include_builtins: bool = True) -> None:
        self._strategies: dict[str, Strategy] = {}
        self._lock = threading.Lock()
        if include_builtins:
            self._strategies.update(BUILTIN_STRATEGIES)

    def add(self, name: str, bundle: Union[Strategy, Mapping[str, Any]]) -> bool:
        """
        Register a strategy under `name`.

        Args:
            name: Strategy name
            bundle: Strategy, or mapping with `retry`, `re_attempt`
                (or `reAttempt`) and `group` keys

        Returns:
            False if `name` is already registered (nothing changes), True otherwise

        Raises:
            pydantic.ValidationError: If `bundle` is not a valid strategy
        """
        strategy = bundle if isinstance(bundle, Strategy) else Strategy.model_validate(bundle)

        with self._lock:
            if name in self._strategies:
                logger.warning("Strategy already registered", strategy=name)
                return False
            self._strategies[name] = strategy

        logger.info("Strategy registered", strategy=name)
        return True

    def get(self, name: str) -> Optional[Strategy]:
        """Return the strategy registered under `name`, or None."""
        with self._lock:
            return self._strategies.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._strategies)
