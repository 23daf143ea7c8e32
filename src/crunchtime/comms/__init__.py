"""Internal event passing for crunch-time games."""

from crunchtime.comms.event_bus import EventBus

__all__ = ["EventBus"]
