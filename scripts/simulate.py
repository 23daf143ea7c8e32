#!/usr/bin/env python3
"""Run one headless crunch-time game to completion.

Usage:
    python3 scripts/simulate.py [--agents 3] [--seed 42] [--max-ticks 200] [--target 100]

Admits N simulated developers, starts a seeded game and advances it one
tick at a time, printing progress and every agent's state per tick.
"""

from __future__ import annotations

import argparse
import random
import sys

from loguru import logger

from crunchtime.simulation import SimulationEngine, SubPhase

DEFAULT_NAMES = [
    "Ada",
    "Grace",
    "Linus",
    "Margaret",
    "Dennis",
    "Barbara",
]


def run(agents: int, seed: int | None, max_ticks: int | None, target: int | None) -> str:
    engine = SimulationEngine(
        rng=random.Random(seed), max_ticks=max_ticks, target_score=target,
    )
    for i in range(agents):
        name = DEFAULT_NAMES[i] if i < len(DEFAULT_NAMES) else f"Dev {i + 1}"
        engine.admit(f"agent-{i + 1}", name)
    engine.start()

    while engine.advance_tick():
        state = engine.state
        crunch = " [CRUNCH TIME]" if state.sub_phase is SubPhase.CRUNCH_TIME else ""
        print(
            f"Tick {state.tick_count}/{state.max_ticks}{crunch} | "
            f"Progress: {round(state.feature_progress)}% | "
            f"Commits: {state.total_score}/{state.target_score}"
        )
        for agent in state.agents:
            print(
                f"  {agent.name}: ({agent.x},{agent.y}) {agent.state.value} | "
                f"{agent.commits} commits"
            )

    state = engine.state
    print(f"Game over! Outcome: {state.outcome.value}")
    print(f"  Progress: {round(state.feature_progress)}%")
    print(f"  Commits: {state.total_score}/{state.target_score}")
    return state.outcome.value


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a headless crunch-time game")
    parser.add_argument("--agents", type=int, default=3, help="Number of developers")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--max-ticks", type=int, default=None, help="Game length")
    parser.add_argument("--target", type=int, default=None, help="Commits to win")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    outcome = run(args.agents, args.seed, args.max_ticks, args.target)
    return 0 if outcome == "WIN" else 1


if __name__ == "__main__":
    sys.exit(main())
