"""Expiration of learned long-term cards.

Each long-term rank k has a retention interval I(k) = base * factor**k.
A card is due at ``learned_timestamp + I(rank)`` and is expired once that
time is not in the future. Nothing here is cached: wall-clock time moves
on its own, so callers ask again whenever they need a fresh answer.
"""

import logging
from datetime import datetime, timedelta

from leitner.config import DEFAULT_LTM_GROWTH_FACTOR, Settings
from leitner.srs.card import Card
from leitner.srs.lesson import Lesson

logger = logging.getLogger(__name__)

# How far before "now" a force-expired card's due time is placed.
FORCE_EXPIRE_MARGIN = timedelta(minutes=1)


class RetentionSchedule:
    """Retention intervals of the long-term ladder."""

    def __init__(
        self, base_interval_days: float = 1.0, growth_factor: float = DEFAULT_LTM_GROWTH_FACTOR
    ) -> None:
        if base_interval_days <= 0:
            raise ValueError("base_interval_days must be positive")
        if growth_factor < 1:
            raise ValueError("growth_factor must be at least 1")
        self.base_interval_days = base_interval_days
        self.growth_factor = growth_factor

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetentionSchedule":
        return cls(settings.ltm_base_interval_days, settings.ltm_growth_factor)

    def interval(self, rank: int) -> timedelta:
        """Return I(rank)."""
        if rank < 0:
            raise ValueError(f"rank must be >= 0, got {rank}")
        return timedelta(days=self.base_interval_days * self.growth_factor**rank)

    def due_time(self, card: Card) -> datetime | None:
        """When the card is due again, or None if it is not learned."""
        if not card.learned or card.learned_timestamp is None:
            return None
        return card.learned_timestamp + self.interval(card.long_term_batch_number)

    def is_expired(self, card: Card, now: datetime) -> bool:
        due = self.due_time(card)
        return due is not None and due <= now

    def refresh_expiration(self, lesson: Lesson, now: datetime) -> list[Card]:
        """Scan every long-term batch and return the expired cards, rank 0 first."""
        expired = [
            card
            for batch in lesson.long_term_batches
            for card in batch
            if self.is_expired(card, now)
        ]
        logger.debug("Expiration refresh: %d expired long-term cards", len(expired))
        return expired

    def force_expire(self, card: Card, now: datetime) -> None:
        """Mark the card learned with a timestamp that makes it due already."""
        card.learned = True
        card.learned_timestamp = (
            now - self.interval(card.long_term_batch_number) - FORCE_EXPIRE_MARGIN
        )
