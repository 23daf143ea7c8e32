"""GameLog — bounded structured event log for one game.

Two windows are kept, both capped at ``limit`` entries:

  - ``events``: GameEvent records (who, what, detail, tick, timestamp)
  - ``lines``: human-readable one-liners for the dashboard ticker

Each recorded event is also published as ``game_event`` on the EventBus
when one is attached, tagged with the owning ``game_id``.  Timestamps come
from the injected clock.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Callable, Iterable

if TYPE_CHECKING:
    from crunchtime.comms.event_bus import EventBus
    from .agent import Agent

SYSTEM = "SYSTEM"


@dataclass
class GameEvent:
    """One attributed log entry."""

    agent_id: str
    agent_name: str
    action: str
    detail: str
    tick: int
    timestamp: float


class GameLog:
    """Bounded event + text log with optional EventBus mirroring."""

    def __init__(
        self,
        limit: int,
        clock: Callable[[], float],
        event_bus: EventBus | None = None,
        events: Iterable[GameEvent] = (),
        lines: Iterable[str] = (),
        game_id: str | None = None,
    ) -> None:
        self.game_id = game_id
        self._clock = clock
        self._event_bus = event_bus
        self.events: deque[GameEvent] = deque(events, maxlen=limit)
        self.lines: deque[str] = deque(lines, maxlen=limit)

    def set_event_bus(self, event_bus: EventBus | None) -> None:
        self._event_bus = event_bus

    def record(self, agent: Agent, action: str, detail: str, tick: int) -> GameEvent:
        """Log an action attributed to ``agent``."""
        return self._append(agent.participant_id, agent.name, action, detail, tick)

    def system(self, detail: str, tick: int, action: str = SYSTEM) -> GameEvent:
        """Log a system-wide event."""
        return self._append(SYSTEM, SYSTEM, action, detail, tick)

    def _append(
        self, agent_id: str, agent_name: str, action: str, detail: str, tick: int,
    ) -> GameEvent:
        event = GameEvent(
            agent_id=agent_id,
            agent_name=agent_name,
            action=action,
            detail=detail,
            tick=tick,
            timestamp=self._clock(),
        )
        self.events.append(event)
        if agent_id == SYSTEM:
            self.lines.append(f"[t{tick}] {detail}")
        else:
            self.lines.append(f"[t{tick}] {agent_name}: {detail}")
        if self._event_bus is not None:
            self._event_bus.publish("game_event", {"game_id": self.game_id, **asdict(event)})
        return event
