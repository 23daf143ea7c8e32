"""Unit tests for EventBus — per-game fan-out of engine messages."""

from __future__ import annotations

import queue
import random
import threading

import pytest

from crunchtime.comms.event_bus import EventBus
from crunchtime.config import Settings
from crunchtime.simulation.registry import GameRegistry

pytestmark = pytest.mark.unit


def _drain(q: queue.Queue) -> list[dict]:
    msgs = []
    while not q.empty():
        msgs.append(q.get_nowait())
    return msgs


def _registry(bus: EventBus) -> GameRegistry:
    return GameRegistry(
        settings=Settings(spawn_chance=0.0, bonus_chance=0.0, outage_chance=0.0),
        rng_factory=lambda game_id: random.Random(game_id),
        clock=lambda: 0.0,
        event_bus=bus,
    )


def _start(registry: GameRegistry, game_id: str):
    engine = registry.create_game(game_id)
    for i in range(3):
        engine.admit(f"{game_id}-p{i}", f"Dev {i}")
    engine.start()
    return engine


# --------------------------------------------------------------------------
# Delivery and filtering
# --------------------------------------------------------------------------

class TestDelivery:
    def test_message_shape(self):
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("game_state_change", {"game_id": "g1", "phase": "ACTIVE"})
        bus.publish("heartbeat")
        assert _drain(q) == [
            {"type": "game_state_change", "data": {"game_id": "g1", "phase": "ACTIVE"}},
            {"type": "heartbeat"},
        ]

    def test_game_filter(self):
        bus = EventBus()
        everything = bus.subscribe()
        only_g1 = bus.subscribe(game_id="g1")
        bus.publish("game_event", {"game_id": "g1", "action": "commit"})
        bus.publish("game_event", {"game_id": "g2", "action": "move"})
        bus.publish("heartbeat")

        assert len(_drain(everything)) == 3
        assert [m["data"]["game_id"] for m in _drain(only_g1)] == ["g1"]

    def test_unsubscribe(self):
        bus = EventBus()
        q = bus.subscribe(game_id="g1")
        bus.unsubscribe(q)
        bus.unsubscribe(queue.Queue())
        bus.publish("game_event", {"game_id": "g1"})
        assert q.empty()
        assert bus.subscriber_count() == 0

    def test_subscriber_count(self):
        bus = EventBus()
        bus.subscribe()
        bus.subscribe(game_id="g1")
        bus.subscribe(game_id="g2")
        assert bus.subscriber_count() == 3
        assert bus.subscriber_count("g1") == 2


class TestOverflow:
    def test_slow_subscriber_keeps_newest(self):
        bus = EventBus(maxsize=4)
        q = bus.subscribe()
        for tick in range(10):
            bus.publish("game_event", {"game_id": "g1", "tick": tick})
        bus.publish("game_over", {"game_id": "g1", "outcome": "TIMEOUT"})

        msgs = _drain(q)
        assert [m["data"].get("tick") for m in msgs[:-1]] == [7, 8, 9]
        assert msgs[-1]["type"] == "game_over"

    def test_full_filtered_queue_does_not_affect_others(self):
        bus = EventBus(maxsize=2)
        g1 = bus.subscribe(game_id="g1")
        g2 = bus.subscribe(game_id="g2")
        for tick in range(5):
            bus.publish("game_event", {"game_id": "g1", "tick": tick})
        bus.publish("game_event", {"game_id": "g2", "tick": 0})
        assert g1.qsize() == 2
        assert g2.qsize() == 1


# --------------------------------------------------------------------------
# Shared bus across a registry
# --------------------------------------------------------------------------

class TestSharedRegistryBus:
    def test_game_events_tagged_with_game_id(self):
        bus = EventBus(maxsize=1000)
        q = bus.subscribe()
        registry = _registry(bus)
        _start(registry, "alpha")
        _start(registry, "beta")
        registry.advance_all()

        msgs = _drain(q)
        assert msgs
        assert all(m["data"]["game_id"] in ("alpha", "beta") for m in msgs)
        events = [m["data"] for m in msgs if m["type"] == "game_event"]
        assert {e["game_id"] for e in events} == {"alpha", "beta"}
        for e in events:
            if e["agent_id"] != "SYSTEM":
                assert e["agent_id"].startswith(e["game_id"])

    def test_per_game_subscription(self):
        bus = EventBus(maxsize=1000)
        alpha_q = bus.subscribe(game_id="alpha")
        registry = _registry(bus)
        _start(registry, "alpha")
        beta = _start(registry, "beta")
        beta.place_environment_item("server_crash")
        registry.advance_all()

        msgs = _drain(alpha_q)
        assert msgs
        assert {m["data"]["game_id"] for m in msgs} == {"alpha"}
        assert not any(m["data"].get("action") == "server_outage" for m in msgs)

    def test_restored_game_keeps_its_tag(self):
        bus = EventBus(maxsize=1000)
        registry = _registry(bus)
        engine = _start(registry, "alpha")
        snap = engine.snapshot()
        restored = registry.restore(snap)

        q = bus.subscribe(game_id="alpha")
        restored.apply_action("alpha-p0", "move", {"x": 0, "y": 0})
        events = [m["data"] for m in _drain(q) if m["type"] == "game_event"]
        assert [e["action"] for e in events] == ["move"]


class TestConcurrency:
    def test_parallel_games_publish_safely(self):
        bus = EventBus(maxsize=10_000)
        qs = {gid: bus.subscribe(game_id=gid) for gid in ("g0", "g1", "g2")}
        registry = _registry(bus)
        engines = [_start(registry, gid) for gid in qs]
        errors = []

        def run(engine):
            try:
                for _ in range(20):
                    engine.advance_tick()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=run, args=(e,)) for e in engines]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        for gid, q in qs.items():
            assert {m["data"]["game_id"] for m in _drain(q)} == {gid}
