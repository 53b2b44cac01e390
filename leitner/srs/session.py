"""The learning session: phase controller for one lesson.

Coordinates the phase table, the pack builder, card migration and the two
phase timers. All state lives on the session object; every public method
runs to completion before the next one is accepted, and each one that can
change the phase ends with an evaluation of the transition table.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from leitner.config import Settings, utcnow
from leitner.srs.assessment import Assessment, check_typed_answer
from leitner.srs.card import Card
from leitner.srs.errors import NoLessonLoaded, PackPositionError, UnsupportedTransition
from leitner.srs.expiration import RetentionSchedule
from leitner.srs.lesson import Lesson
from leitner.srs.migration import pull, push
from leitner.srs.pack import build_pack, should_flip
from leitner.srs.phases import (
    WAITING_PHASES,
    Counts,
    Effect,
    LearningPhase,
    Signals,
    stabilize,
)
from leitner.srs.timer import Countdown, PhaseTimer

logger = logging.getLogger(__name__)

# Phases whose pack is rebuilt when the learner reaches its end and the
# table keeps the phase: whatever is left in the tier comes around again.
RESTARTABLE_PHASES = frozenset(
    {
        LearningPhase.FILLING_USTM,
        LearningPhase.REPEATING_USTM,
        LearningPhase.REPEATING_STM,
        LearningPhase.REPEATING_LTM,
    }
)

BROWSING_PHASES = frozenset({LearningPhase.NOTHING, LearningPhase.BROWSE_NEW})


@dataclass(frozen=True)
class Outcome:
    """What an evaluation left behind, for the UI to act on."""

    phase: LearningPhase
    finished: bool = False
    pack_rebuilt: bool = False


class LearningSession:
    """Drives one lesson through the learning phases."""

    def __init__(
        self,
        settings: Settings,
        lesson: Lesson | None = None,
        *,
        ustm_timer: PhaseTimer | None = None,
        stm_timer: PhaseTimer | None = None,
        clock: Callable[[], datetime] = utcnow,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.schedule = RetentionSchedule.from_settings(settings)
        self.ustm_timer = ustm_timer or Countdown(settings.ustm_seconds, "USTM timer")
        self.stm_timer = stm_timer or Countdown(settings.stm_minutes * 60, "STM timer")
        self._clock = clock
        self._rng = rng or random.Random()
        self._lesson: Lesson | None = None
        self._phase = LearningPhase.NOTHING
        self._pack: list[Card] = []
        self._position = 0
        self._flipped = False
        self._stop_waiting = False
        self.finished = False
        if lesson is not None:
            self.load(lesson)

    # --- State ---

    @property
    def lesson(self) -> Lesson:
        if self._lesson is None:
            raise NoLessonLoaded("no lesson is loaded")
        return self._lesson

    @property
    def has_lesson(self) -> bool:
        return self._lesson is not None

    @property
    def phase(self) -> LearningPhase:
        return self._phase

    @property
    def pack(self) -> tuple[Card, ...]:
        return tuple(self._pack)

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        """Cards left in the current pass."""
        return max(0, len(self._pack) - self._position)

    @property
    def pass_complete(self) -> bool:
        return self._phase not in WAITING_PHASES and self._position >= len(self._pack)

    @property
    def current_card(self) -> Card | None:
        """The card under the cursor, or None while waiting or past the end."""
        if self._phase in WAITING_PHASES or self._position >= len(self._pack):
            return None
        return self._pack[self._position]

    @property
    def sides_flipped(self) -> bool:
        """True if the reverse side of the current card is asked first."""
        return self._flipped

    def counts(self) -> Counts:
        lesson = self.lesson
        return Counts(
            unlearned=len(lesson.unlearned_batch),
            ustm=len(lesson.ultra_short_term_list),
            stm=len(lesson.short_term_list),
            expired_ltm=len(self.schedule.refresh_expiration(lesson, self._clock())),
        )

    # --- Lesson lifecycle ---

    def load(self, lesson: Lesson) -> None:
        self._stop_timers()
        self._lesson = lesson
        self.finished = False
        self._set_phase(LearningPhase.NOTHING)

    def unload(self) -> None:
        self._stop_timers()
        self._lesson = None
        self._phase = LearningPhase.NOTHING
        self._pack = []
        self._position = 0
        self._flipped = False
        self._stop_waiting = False
        self.finished = False

    def stop(self) -> None:
        """Abandon the session; USTM and STM cards go back to the unlearned pool."""
        self._stop_timers()
        self.lesson.reset_short_term()
        self.finished = False
        self._set_phase(LearningPhase.NOTHING)

    # --- Entering a mode ---

    def start_learning(self) -> Outcome:
        """Learn new cards through the USTM and STM with both timers running."""
        self._begin(LearningPhase.FILLING_USTM)
        self.ustm_timer.start()
        self.stm_timer.start()
        return self.update()

    def start_simple_learning(self) -> Outcome:
        """Learn new cards straight into the long-term ladder, without timers."""
        self._begin(LearningPhase.SIMPLE_LEARNING)
        return self.update()

    def start_repeating(self) -> Outcome:
        """Repeat the expired long-term cards."""
        self._begin(LearningPhase.REPEATING_LTM)
        return self.update()

    def browse_new(self) -> Outcome:
        self._begin(LearningPhase.BROWSE_NEW)
        return Outcome(self._phase, pack_rebuilt=True)

    def _begin(self, phase: LearningPhase) -> None:
        if self._lesson is None:
            raise NoLessonLoaded("no lesson is loaded")
        self._stop_timers()
        self.finished = False
        self._stop_waiting = False
        self._set_phase(phase)

    # --- User actions ---

    def judge(self, remembered: bool) -> Outcome:
        """Apply the learner's judgment to the current card and move on."""
        card = self._require_card("judge")
        if remembered:
            push(self.lesson, card, self._phase, self._clock())
        else:
            pull(
                self.lesson,
                card,
                self._phase,
                self.settings.return_forgotten_cards,
                self._rng,
            )
        self._advance()
        return self.update()

    def next_card(self) -> Outcome:
        """Move on: pushes the card while filling the USTM, otherwise just browses."""
        if self._phase is LearningPhase.FILLING_USTM:
            return self.judge(True)
        if self._phase in BROWSING_PHASES:
            if self._position < len(self._pack):
                self._advance()
            return Outcome(self._phase)
        raise UnsupportedTransition("next card", self._phase)

    def skip_waiting(self) -> Outcome:
        self._stop_waiting = True
        return self.update()

    def tick(self) -> Outcome:
        """Re-evaluate with the current timer state."""
        return self.update()

    def pause_timers(self) -> None:
        self.ustm_timer.pause()
        self.stm_timer.pause()

    def resume_timers(self) -> None:
        self.ustm_timer.resume()
        self.stm_timer.resume()

    def edit_current_card(self, front_text: str, reverse_text: str) -> Card:
        card = self._require_position()
        card.set_texts(front_text, reverse_text)
        return card

    def delete_current_card(self) -> Outcome:
        """Delete the current card from the lesson and from the pack."""
        card = self._require_position()
        if not self.lesson.remove_card(card):
            logger.error("Could not delete card %s: not found in any batch", card.id)
        del self._pack[self._position]
        self._on_card_changed()
        return self.update()

    def typed_answer_matches(self, answer: str) -> Assessment:
        """Check a typed answer against the side that is being asked for."""
        card = self._require_position()
        expected = card.front_text if self._flipped else card.reverse_text
        return check_typed_answer(answer, expected, self.settings.case_sensitive_typing)

    # --- Evaluation ---

    def update(self) -> Outcome:
        """Evaluate the transition table and apply its effects."""
        signals = Signals(
            ustm_timer_expired=self.ustm_timer.finished,
            stm_timer_expired=self.stm_timer.finished,
            stop_waiting=self._stop_waiting,
            pass_complete=self.pass_complete,
        )
        self._stop_waiting = False
        start_phase = self._phase

        final_phase, transitions = stabilize(start_phase, self.counts(), signals)
        effects = [effect for transition in transitions for effect in transition.effects]

        for effect in effects:
            if effect is Effect.START_USTM_TIMER:
                self.ustm_timer.start()
            elif effect is Effect.STOP_USTM_TIMER:
                self.ustm_timer.stop()
            elif effect is Effect.STOP_STM_TIMER:
                self.stm_timer.stop()

        rebuilt = False
        if Effect.REBUILD_PACK in effects:
            rebuilt = self._set_phase(final_phase)

        if Effect.FINISH in effects:
            self._finish()
            return Outcome(self._phase, finished=True, pack_rebuilt=rebuilt)

        # REPEATING_LTM re-reads the expired cards only here, never mid-pass.
        if final_phase is start_phase and signals.pass_complete and final_phase in RESTARTABLE_PHASES:
            rebuilt = self._set_phase(final_phase)

        return Outcome(self._phase, pack_rebuilt=rebuilt)

    # --- Internals ---

    def _set_phase(self, phase: LearningPhase) -> bool:
        """Enter ``phase``: assign it, reset the cursor and rebuild the pack.

        The pack is built before anything is assigned, so a failed build
        leaves the session as it was. Returns whether a pack was built.
        """
        cards = build_pack(
            phase,
            self.lesson,
            self.schedule,
            self._clock(),
            shuffle=self.settings.learn_new_cards_randomly,
            rng=self._rng,
        )
        self._phase = phase
        self._position = 0
        if cards is not None:
            self._pack = cards
        self._on_card_changed()
        logger.info("Learning phase %s with %d cards in the pack", phase, len(self._pack))
        return cards is not None

    def _advance(self) -> None:
        self._position += 1
        self._on_card_changed()

    def _on_card_changed(self) -> None:
        if self.current_card is None:
            self._flipped = False
        else:
            self._flipped = should_flip(self._phase, self.settings.flip_card_sides, self._rng)

    def _require_position(self) -> Card:
        size = 0 if self._phase in WAITING_PHASES else len(self._pack)
        if not 0 <= self._position < size:
            raise PackPositionError(self._position, size)
        return self._pack[self._position]

    def _require_card(self, operation: str) -> Card:
        if self._phase in WAITING_PHASES or self._phase in BROWSING_PHASES:
            raise UnsupportedTransition(operation, self._phase)
        return self._require_position()

    def _finish(self) -> None:
        self._stop_timers()
        self.finished = True
        logger.info("Learning finished in phase %s", self._phase)

    def _stop_timers(self) -> None:
        self.ustm_timer.stop()
        self.stm_timer.stop()
