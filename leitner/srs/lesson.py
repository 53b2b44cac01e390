"""Lessons and the batches that hold their cards.

A lesson owns four kinds of card collections: the unlearned pool, the
ultra-short-term (USTM) and short-term (STM) working lists, and a ladder of
long-term batches where rank 0 is the most recently learned tier. Every
card lives in exactly one of them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from leitner.srs.card import Card

if TYPE_CHECKING:
    from leitner.srs.expiration import RetentionSchedule

logger = logging.getLogger(__name__)


class Batch:
    """An ordered card collection with identity-based membership."""

    def __init__(self, cards: Iterable[Card] = ()) -> None:
        self._cards: list[Card] = []
        for card in cards:
            self.add_card(card)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __contains__(self, card: object) -> bool:
        return any(c is card for c in self._cards)

    @property
    def cards(self) -> list[Card]:
        """A copy of the cards in order."""
        return list(self._cards)

    @property
    def number_of_cards(self) -> int:
        return len(self._cards)

    def add_card(self, card: Card, index: int | None = None) -> None:
        """Append the card, or insert it before ``index``."""
        if index is None:
            self._cards.append(card)
        else:
            self._cards.insert(index, card)

    def remove_card(self, card: Card) -> bool:
        """Remove the card if present; return whether it was found."""
        for i, c in enumerate(self._cards):
            if c is card:
                del self._cards[i]
                return True
        return False

    def clear(self) -> list[Card]:
        """Empty the batch and return what it held."""
        cards, self._cards = self._cards, []
        return cards


class LongTermBatch(Batch):
    """One rank of the long-term ladder."""

    def __init__(self, number: int, cards: Iterable[Card] = ()) -> None:
        self.number = number
        super().__init__(cards)

    def __repr__(self) -> str:
        return f"LongTermBatch({self.number}, {len(self)} cards)"

    def add_card(self, card: Card, index: int | None = None) -> None:
        card.long_term_batch_number = self.number
        super().add_card(card, index)


class TierKind(Enum):
    UNLEARNED = "unlearned"
    USTM = "ustm"
    STM = "stm"
    LONG_TERM = "long_term"


@dataclass(frozen=True)
class Tier:
    """Where a card currently lives."""

    kind: TierKind
    rank: int | None = None  # only set for LONG_TERM


@dataclass(frozen=True)
class BatchStatistics:
    """Card and expired-card counts of one long-term rank."""

    number_of_cards: int
    expired_cards: int


class Lesson:
    """A lesson: all of its batches and a free-form description."""

    def __init__(self, description: str = "") -> None:
        self.description = description
        self.unlearned_batch = Batch()
        self.ultra_short_term_list = Batch()
        self.short_term_list = Batch()
        self._long_term_batches: list[LongTermBatch] = []

    def __repr__(self) -> str:
        return (
            f"Lesson(unlearned={len(self.unlearned_batch)}, "
            f"ustm={len(self.ultra_short_term_list)}, stm={len(self.short_term_list)}, "
            f"long_term={[len(b) for b in self._long_term_batches]})"
        )

    # --- Long-term ladder ---

    @property
    def long_term_batches(self) -> list[LongTermBatch]:
        return list(self._long_term_batches)

    @property
    def number_of_long_term_batches(self) -> int:
        return len(self._long_term_batches)

    def long_term_batch(self, rank: int) -> LongTermBatch:
        if rank < 0 or rank >= len(self._long_term_batches):
            raise IndexError(f"no long-term batch with rank {rank}")
        return self._long_term_batches[rank]

    def add_long_term_batch(self) -> LongTermBatch:
        batch = LongTermBatch(len(self._long_term_batches))
        self._long_term_batches.append(batch)
        logger.debug("Created long-term batch %d", batch.number)
        return batch

    def ensure_long_term_batch(self, rank: int) -> LongTermBatch:
        """Return rank ``rank``, creating it and any lower missing ranks."""
        while len(self._long_term_batches) <= rank:
            self.add_long_term_batch()
        return self._long_term_batches[rank]

    # --- Membership ---

    def add_card(self, card: Card) -> None:
        """Add a new card to the end of the unlearned pool."""
        self.unlearned_batch.add_card(card)

    @property
    def cards(self) -> list[Card]:
        """Every card of the lesson, unlearned first and highest rank last."""
        result = self.unlearned_batch.cards
        result += self.ultra_short_term_list.cards
        result += self.short_term_list.cards
        for batch in self._long_term_batches:
            result += batch.cards
        return result

    def __len__(self) -> int:
        return (
            len(self.unlearned_batch)
            + len(self.ultra_short_term_list)
            + len(self.short_term_list)
            + sum(len(b) for b in self._long_term_batches)
        )

    def locate(self, card: Card) -> Tier | None:
        """Return the tier holding ``card``, or None if it is not in the lesson."""
        if card in self.unlearned_batch:
            return Tier(TierKind.UNLEARNED)
        if card in self.ultra_short_term_list:
            return Tier(TierKind.USTM)
        if card in self.short_term_list:
            return Tier(TierKind.STM)
        for batch in self._long_term_batches:
            if card in batch:
                return Tier(TierKind.LONG_TERM, batch.number)
        return None

    def batch_for(self, tier: Tier) -> Batch:
        if tier.kind is TierKind.UNLEARNED:
            return self.unlearned_batch
        if tier.kind is TierKind.USTM:
            return self.ultra_short_term_list
        if tier.kind is TierKind.STM:
            return self.short_term_list
        return self.long_term_batch(tier.rank or 0)

    def remove_card(self, card: Card) -> bool:
        """Remove a card from whichever tier holds it."""
        tier = self.locate(card)
        if tier is None:
            logger.warning("Card %s is not part of the lesson", card.id)
            return False
        return self.batch_for(tier).remove_card(card)

    def batch_cards(self, stack_index: int) -> list[Card]:
        """Browse view: 0 = all cards, 1 = unlearned, k + 2 = long-term rank k."""
        if stack_index == 0:
            return self.cards
        if stack_index == 1:
            return self.unlearned_batch.cards
        return self.long_term_batch(stack_index - 2).cards

    # --- Bulk resets ---

    def reset(self) -> None:
        """Forget every card: all cards go back to the unlearned pool."""
        cards = self.cards
        self.unlearned_batch.clear()
        self.ultra_short_term_list.clear()
        self.short_term_list.clear()
        for batch in self._long_term_batches:
            batch.clear()
        for card in cards:
            card.learned = False
            self.unlearned_batch.add_card(card)
        logger.info("Reset lesson: %d cards are unlearned again", len(cards))

    def reset_short_term(self) -> None:
        """Move the USTM and STM cards back to the end of the unlearned pool."""
        for card in self.ultra_short_term_list.clear() + self.short_term_list.clear():
            self.unlearned_batch.add_card(card)

    # --- Statistics ---

    def batch_statistics(self, schedule: RetentionSchedule, now: datetime) -> list[BatchStatistics]:
        return [
            BatchStatistics(
                number_of_cards=len(batch),
                expired_cards=sum(1 for card in batch if schedule.is_expired(card, now)),
            )
            for batch in self._long_term_batches
        ]
