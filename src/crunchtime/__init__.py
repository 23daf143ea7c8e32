"""crunch-time — deterministic tick-based hackathon simulations."""

__version__ = "0.1.0"
