"""Building the current pack.

The current pack is the ordered list of cards the learner walks through in
the active phase. It is a copy taken at build time; mutating the lesson
afterwards never changes a pack that was already built.
"""

import logging
import random
from datetime import datetime

from leitner.config import FlipMode
from leitner.srs.card import Card
from leitner.srs.expiration import RetentionSchedule
from leitner.srs.lesson import Lesson
from leitner.srs.phases import WAITING_PHASES, LearningPhase

logger = logging.getLogger(__name__)

SHUFFLED_PHASES = frozenset(
    {
        LearningPhase.SIMPLE_LEARNING,
        LearningPhase.FILLING_USTM,
        LearningPhase.REPEATING_USTM,
        LearningPhase.REPEATING_STM,
        LearningPhase.REPEATING_LTM,
    }
)

FLIPPED_PHASES = frozenset(
    {LearningPhase.REPEATING_USTM, LearningPhase.REPEATING_STM, LearningPhase.REPEATING_LTM}
)


def source_cards(
    phase: LearningPhase,
    lesson: Lesson,
    schedule: RetentionSchedule,
    now: datetime,
) -> list[Card] | None:
    """Return the cards backing ``phase`` in collection order.

    Waiting phases show no cards and return None: the previous pack stays.
    """
    if phase in WAITING_PHASES:
        return None
    if phase is LearningPhase.REPEATING_USTM:
        return lesson.ultra_short_term_list.cards
    if phase is LearningPhase.REPEATING_STM:
        return lesson.short_term_list.cards
    if phase is LearningPhase.REPEATING_LTM:
        return schedule.refresh_expiration(lesson, now)
    # NOTHING, BROWSE_NEW, SIMPLE_LEARNING and FILLING_USTM all work on new cards.
    return lesson.unlearned_batch.cards


def build_pack(
    phase: LearningPhase,
    lesson: Lesson,
    schedule: RetentionSchedule,
    now: datetime,
    shuffle: bool = False,
    rng: random.Random | None = None,
) -> list[Card] | None:
    """Build a fresh pack for ``phase``, shuffled if requested and applicable."""
    cards = source_cards(phase, lesson, schedule, now)
    if cards is None:
        logger.debug("No pack rebuild while %s", phase)
        return None

    if shuffle and phase in SHUFFLED_PHASES:
        (rng or random).shuffle(cards)

    logger.debug("Built pack for %s: %d cards", phase, len(cards))
    return cards


def should_flip(phase: LearningPhase, mode: FlipMode, rng: random.Random | None = None) -> bool:
    """Decide whether the reverse side is asked first for the next card."""
    if phase not in FLIPPED_PHASES:
        return False
    if mode is FlipMode.ALWAYS:
        return True
    if mode is FlipMode.RANDOM:
        return (rng or random).random() < 0.5
    return False
