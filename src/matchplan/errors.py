"""Error types raised by the scheduling engine.

Pure functions raise these; the boundary calls (build_plan, commit,
SchedulingRun) turn them into {"success": False, "message": ...} results.
"""


class SchedulingError(ValueError):
    """Base class for every failure the engine reports."""


class InvalidInputError(SchedulingError):
    """Pool too small, duplicate ids, bad rounds, malformed date range."""


class InsufficientCapacityError(SchedulingError):
    """Not enough eligible weeks or slots to place every fixture."""


class ConflictError(SchedulingError):
    """The store rejected a write (duplicate match number, concurrent write)."""
