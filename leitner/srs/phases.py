"""Learning phases and the phase transition table.

The table is a pure function of the current phase, the tier sizes and the
edge signals, so it can be tested without touching a lesson. Applying the
returned effects (timers, pack rebuilds, finishing) is the session's job.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from leitner.srs.errors import PhaseStabilizationError


class LearningPhase(Enum):
    NOTHING = "nothing"  # idle, no learning
    BROWSE_NEW = "browse_new"  # looking at new cards, not learning
    SIMPLE_LEARNING = "simple_learning"  # no USTM/STM, no timers
    FILLING_USTM = "filling_ustm"
    WAITING_FOR_USTM = "waiting_for_ustm"
    REPEATING_USTM = "repeating_ustm"
    WAITING_FOR_STM = "waiting_for_stm"
    REPEATING_STM = "repeating_stm"
    REPEATING_LTM = "repeating_ltm"

    def __str__(self) -> str:
        return self.name


WAITING_PHASES = frozenset({LearningPhase.WAITING_FOR_USTM, LearningPhase.WAITING_FOR_STM})
REPEATING_PHASES = frozenset(
    {LearningPhase.REPEATING_USTM, LearningPhase.REPEATING_STM, LearningPhase.REPEATING_LTM}
)


class Effect(Enum):
    REBUILD_PACK = "rebuild_pack"
    START_USTM_TIMER = "start_ustm_timer"
    STOP_USTM_TIMER = "stop_ustm_timer"
    STOP_STM_TIMER = "stop_stm_timer"
    FINISH = "finish"


@dataclass(frozen=True)
class Counts:
    """Tier sizes, derived fresh for every evaluation."""

    unlearned: int = 0
    ustm: int = 0
    stm: int = 0
    expired_ltm: int = 0


@dataclass(frozen=True)
class Signals:
    """Edge signals consumed by one evaluation."""

    ustm_timer_expired: bool = False
    stm_timer_expired: bool = False
    stop_waiting: bool = False
    pass_complete: bool = False  # every card of the current pack was judged


@dataclass(frozen=True)
class Transition:
    """One row of the table: where to go and what to do on the way."""

    phase: LearningPhase
    effects: tuple[Effect, ...]


def next_transition(phase: LearningPhase, counts: Counts, signals: Signals) -> Transition | None:
    """Apply the first matching row for ``phase``; None means the phase holds.

    A FINISH transition keeps the phase; finishing is reported, not entered.
    """
    P = LearningPhase
    rebuild = (Effect.REBUILD_PACK,)

    if phase is P.SIMPLE_LEARNING:
        if signals.pass_complete:
            return Transition(phase, (Effect.FINISH,))

    elif phase is P.FILLING_USTM:
        if signals.stm_timer_expired:
            return Transition(P.REPEATING_USTM, rebuild)
        if counts.unlearned == 0 and not signals.ustm_timer_expired:
            return Transition(P.WAITING_FOR_USTM, rebuild)
        if signals.ustm_timer_expired:
            return Transition(P.REPEATING_USTM, rebuild)

    elif phase is P.WAITING_FOR_USTM:
        if signals.ustm_timer_expired or signals.stop_waiting:
            return Transition(P.REPEATING_USTM, (Effect.STOP_USTM_TIMER, Effect.REBUILD_PACK))

    elif phase is P.REPEATING_USTM:
        if counts.ustm == 0:
            if signals.stm_timer_expired:
                return Transition(P.REPEATING_STM, rebuild)
            if counts.unlearned > 0:
                return Transition(P.FILLING_USTM, (Effect.START_USTM_TIMER, Effect.REBUILD_PACK))
            return Transition(P.WAITING_FOR_STM, rebuild)

    elif phase is P.WAITING_FOR_STM:
        if signals.stm_timer_expired or signals.stop_waiting:
            return Transition(P.REPEATING_STM, (Effect.STOP_STM_TIMER, Effect.REBUILD_PACK))

    elif phase is P.REPEATING_STM:
        if counts.stm == 0:
            return Transition(phase, (Effect.FINISH,))

    elif phase is P.REPEATING_LTM:
        if counts.expired_ltm == 0:
            return Transition(phase, (Effect.FINISH,))

    return None


def _after(signals: Signals, transition: Transition, left: LearningPhase) -> Signals:
    """Signals as seen by the next step once ``transition`` has been applied."""
    effects = transition.effects
    if Effect.START_USTM_TIMER in effects:
        signals = replace(signals, ustm_timer_expired=False)
    if Effect.STOP_USTM_TIMER in effects:
        signals = replace(signals, ustm_timer_expired=True)
    if Effect.STOP_STM_TIMER in effects:
        signals = replace(signals, stm_timer_expired=True)
    if left in WAITING_PHASES:
        signals = replace(signals, stop_waiting=False)
    if transition.phase is not left:
        # A new pack has not been looked at yet.
        signals = replace(signals, pass_complete=False)
    return signals


def stabilize(
    phase: LearningPhase, counts: Counts, signals: Signals
) -> tuple[LearningPhase, list[Transition]]:
    """Apply the table until it holds or finishes.

    Returns the final phase and every transition taken, in order. Raises
    PhaseStabilizationError if no fixed point is reached within one step
    per phase.
    """
    taken: list[Transition] = []
    for _ in range(len(LearningPhase) + 1):
        transition = next_transition(phase, counts, signals)
        if transition is None:
            return phase, taken
        taken.append(transition)
        if Effect.FINISH in transition.effects:
            return phase, taken
        signals = _after(signals, transition, phase)
        phase = transition.phase
    raise PhaseStabilizationError(f"no fixed point after {len(taken)} transitions, last phase {phase}")
