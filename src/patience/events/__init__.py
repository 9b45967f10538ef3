"""Lifecycle event broadcasting."""

from patience.events.bus import EventBus, EventHandler, EventPublisher

__all__ = ["EventBus", "EventHandler", "EventPublisher"]
