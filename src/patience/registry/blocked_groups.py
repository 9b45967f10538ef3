"""
Blocked-group registry.

Holds the group identifiers currently under escalation. A group stays
blocked until the re-attempt phase that blocked it concludes; there is no
expiry and no persistence.

The registry is a plain set, not a reference-counted lock: two overlapping
escalations on the same group are not merged, and the first one to finish
unblocks the group for both. `contains` followed later by `add` is not
atomic, so two calls may both pass the blocked check before either blocks
the group. The lock below only keeps individual operations consistent when
orchestrators run on several threads.
"""

import threading

import structlog

from patience.monitoring.metrics import blocked_groups_gauge

logger = structlog.get_logger(__name__)


class BlockedGroupRegistry:
    """Ordered set of blocked group identifiers."""

    def __init__(self) -> None:
        self._groups: list[str] = []
        self._lock = threading.Lock()

    def add(self, group: str) -> None:
        """Block a group. Adding an already blocked group is a no-op."""
        with self._lock:
            if group in self._groups:
                return
            self._groups.append(group)
            blocked_groups_gauge.inc()
        logger.info("Group blocked", group=group)

    def remove(self, group: str) -> None:
        """Unblock a group. Removing an unknown group is a no-op."""
        with self._lock:
            if group not in self._groups:
                return
            self._groups.remove(group)
            blocked_groups_gauge.dec()
        logger.info("Group unblocked", group=group)

    def contains(self, group: str) -> bool:
        with self._lock:
            return group in self._groups

    def __contains__(self, group: object) -> bool:
        return isinstance(group, str) and self.contains(group)

    def __len__(self) -> int:
        with self._lock:
            return len(self._groups)

    def snapshot(self) -> list[str]:
        """Blocked groups in the order they were blocked."""
        with self._lock:
            return list(self._groups)
