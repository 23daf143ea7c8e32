"""Errors raised by engine operations.

Every operation validates before it mutates, so a raised error always
leaves the game exactly as it was.  Nothing is retried internally.
"""


class SimulationError(Exception):
    """Base class for rejected engine operations."""


class InvalidPhaseError(SimulationError):
    """Operation not valid for the game's current phase."""


class NotFoundError(SimulationError):
    """Unknown participant or game."""


class OutOfBoundsError(SimulationError):
    """Coordinates fall outside the grid."""


class CellOccupiedError(SimulationError):
    """Placement target is not an empty cell."""


class InsufficientParticipantsError(SimulationError):
    """Not enough admitted participants to start."""


class InvalidActionError(SimulationError):
    """Unrecognized action name or malformed parameters."""


class NotOnRequiredCellError(SimulationError):
    """Action requires standing on a specific kind of cell."""
