"""Moving cards between tiers.

``push`` promotes a card the learner remembered, ``pull`` sends a forgotten
card back to the unlearned pool. Both are keyed on the learning phase the
card was judged in. A card that is missing from the tier it should leave is
logged and the move still completes, so the card always ends up in its
destination tier.
"""

import logging
import random
from datetime import datetime

from leitner.config import ReturnPosition
from leitner.srs.card import Card
from leitner.srs.errors import UnsupportedTransition
from leitner.srs.lesson import Batch, Lesson, LongTermBatch
from leitner.srs.phases import LearningPhase

logger = logging.getLogger(__name__)


def _remove(batch: Batch | None, card: Card, tier_name: str) -> None:
    if batch is None or not batch.remove_card(card):
        logger.warning("Card %s was not found in %s; moving it anyway", card.id, tier_name)


def _long_term_source(lesson: Lesson, card: Card) -> LongTermBatch | None:
    """The rank batch the card claims to be in, or None if that rank does not exist."""
    rank = card.long_term_batch_number
    if rank < lesson.number_of_long_term_batches:
        return lesson.long_term_batch(rank)
    return None


def push(lesson: Lesson, card: Card, phase: LearningPhase, now: datetime) -> None:
    """Move a remembered card one tier up."""
    P = LearningPhase

    if phase is P.SIMPLE_LEARNING:
        _remove(lesson.unlearned_batch, card, "the unlearned batch")
        lesson.ensure_long_term_batch(0).add_card(card)
        card.set_learned(True, now)

    elif phase is P.FILLING_USTM:
        # Being in the USTM does not make a card learned.
        _remove(lesson.unlearned_batch, card, "the unlearned batch")
        lesson.ultra_short_term_list.add_card(card)

    elif phase is P.REPEATING_USTM:
        _remove(lesson.ultra_short_term_list, card, "the USTM")
        lesson.short_term_list.add_card(card)

    elif phase is P.REPEATING_STM:
        _remove(lesson.short_term_list, card, "the STM")
        lesson.ensure_long_term_batch(0).add_card(card)
        card.set_learned(True, now)

    elif phase is P.REPEATING_LTM:
        rank = card.long_term_batch_number
        _remove(_long_term_source(lesson, card), card, f"long-term batch {rank}")
        lesson.ensure_long_term_batch(rank + 1).add_card(card)
        card.update_learned_timestamp(now)

    else:
        raise UnsupportedTransition("push", phase)

    logger.debug("Pushed card %s in %s", card.id, phase)


def return_to_unlearned(
    lesson: Lesson,
    card: Card,
    position: ReturnPosition,
    rng: random.Random | None = None,
) -> None:
    """Insert a card into the unlearned pool according to ``position``."""
    unlearned = lesson.unlearned_batch
    if position is ReturnPosition.APPEND:
        unlearned.add_card(card)
    elif position is ReturnPosition.RANDOM and len(unlearned) > 0:
        unlearned.add_card(card, (rng or random).randrange(len(unlearned)))
    else:
        unlearned.add_card(card, 0)


def pull(
    lesson: Lesson,
    card: Card,
    phase: LearningPhase,
    position: ReturnPosition = ReturnPosition.PREPEND,
    rng: random.Random | None = None,
) -> None:
    """Send a forgotten card back to the unlearned pool."""
    P = LearningPhase

    if phase is P.SIMPLE_LEARNING:
        # Cards in simple learning are still unlearned.
        return

    if phase is P.REPEATING_USTM:
        source: Batch | None = lesson.ultra_short_term_list
        tier_name = "the USTM"
    elif phase is P.REPEATING_STM:
        source, tier_name = lesson.short_term_list, "the STM"
    elif phase is P.REPEATING_LTM:
        rank = card.long_term_batch_number
        source, tier_name = _long_term_source(lesson, card), f"long-term batch {rank}"
    else:
        raise UnsupportedTransition("pull", phase)

    card.learned = False
    _remove(source, card, tier_name)
    return_to_unlearned(lesson, card, position, rng)
    logger.debug("Pulled card %s back to the unlearned batch in %s", card.id, phase)
