"""EventBus — thread-safe pub/sub shared by every game in a registry.

Messages are ``{"type": ..., "data": {...}}``.  Every message the
SimulationEngine publishes carries ``data["game_id"]``, so one bus can serve
many games: ``subscribe(game_id=...)`` delivers only that game's messages,
``subscribe()`` delivers everything.

Each subscriber gets its own bounded queue.  A slow subscriber loses its
oldest messages, never the newest, and never blocks a publishing engine.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass


@dataclass(eq=False)
class _Subscription:
    q: queue.Queue
    game_id: str | None

    def wants(self, msg: dict) -> bool:
        if self.game_id is None:
            return True
        data = msg.get("data")
        return isinstance(data, dict) and data.get("game_id") == self.game_id


class EventBus:
    """Game event fan-out with optional per-game filtering."""

    def __init__(self, maxsize: int = 100) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscriptions: list[_Subscription] = []

    def subscribe(self, game_id: str | None = None) -> queue.Queue:
        """Return a queue receiving all messages, or only ``game_id``'s."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscriptions.append(_Subscription(q, game_id))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s.q is not q]

    def subscriber_count(self, game_id: str | None = None) -> int:
        """Subscriptions that would receive a message for ``game_id``."""
        sample = {"data": {"game_id": game_id}}
        with self._lock:
            if game_id is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.wants(sample))

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            targets = [s.q for s in self._subscriptions if s.wants(msg)]
        for q in targets:
            self._offer(q, msg)

    @staticmethod
    def _offer(q: queue.Queue, msg: dict) -> None:
        while True:
            try:
                q.put_nowait(msg)
                return
            except queue.Full:
                try:
                    q.get_nowait()
                except queue.Empty:
                    pass
