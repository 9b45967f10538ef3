"""Process- or client-scoped registries shared by orchestrators."""

from patience.registry.blocked_groups import BlockedGroupRegistry
from patience.registry.strategies import BUILTIN_STRATEGIES, StrategyRegistry

__all__ = ["BlockedGroupRegistry", "StrategyRegistry", "BUILTIN_STRATEGIES"]
