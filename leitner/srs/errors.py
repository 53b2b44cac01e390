"""Exceptions raised by the scheduler core.

Invariant violations mean the session and the migration rules disagree
about where a card is or what phase is active; callers should treat them as
bugs. Stale removals are not errors here, they are logged where they occur.
"""


class SchedulerError(Exception):
    """Base class for scheduler errors."""


class InvariantViolation(SchedulerError):
    """A programming invariant of the scheduler was broken."""


class UnsupportedTransition(InvariantViolation):
    """A card move was requested in a phase that does not allow it."""

    def __init__(self, operation: str, phase: object) -> None:
        self.operation = operation
        self.phase = phase
        super().__init__(f"unsupported learning phase {phase!s} for {operation}")


class PackPositionError(InvariantViolation, IndexError):
    """A pack position outside the current pack was used."""

    def __init__(self, position: int, size: int) -> None:
        self.position = position
        self.size = size
        super().__init__(f"position {position} outside the pack (size {size})")


class PhaseStabilizationError(InvariantViolation):
    """The transition table did not reach a fixed point."""


class NoLessonLoaded(SchedulerError):
    """The session has no lesson to work on."""
