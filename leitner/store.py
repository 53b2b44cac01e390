"""Lesson persistence.

Stores the unlearned pool, the long-term ladder and the description of a
lesson. The USTM and STM lists belong to a running session only: their
cards are written as unlearned (after the pool, USTM first) so a reloaded
lesson starts with empty working lists and no card goes missing.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leitner.models.card import CardRecord
from leitner.models.lesson import LessonRecord
from leitner.srs.card import Card, CardSide, Font
from leitner.srs.lesson import Lesson

logger = logging.getLogger(__name__)


class LessonNotFound(LookupError):
    """No lesson with the requested name is stored."""


class LessonExists(ValueError):
    """A lesson with that name is already stored."""


def card_to_record(card: Card, lesson_id: int, position: int, batch_number: int | None) -> CardRecord:
    front, back = card.front_side, card.reverse_side
    return CardRecord(
        uid=card.id,
        lesson_id=lesson_id,
        position=position,
        batch_number=batch_number,
        learned=card.learned if batch_number is not None else False,
        learned_at=card.learned_timestamp,
        repeat_by_typing=card.repeat_by_typing,
        front_text=front.text,
        front_font_family=front.font.family,
        front_font_size=front.font.size,
        front_bold=front.font.bold,
        front_italic=front.font.italic,
        back_text=back.text,
        back_font_family=back.font.family,
        back_font_size=back.font.size,
        back_bold=back.font.bold,
        back_italic=back.font.italic,
    )


def record_to_card(record: CardRecord) -> Card:
    card = Card(
        CardSide(
            record.front_text,
            Font(record.front_font_family, record.front_font_size, record.front_bold, record.front_italic),
        ),
        CardSide(
            record.back_text,
            Font(record.back_font_family, record.back_font_size, record.back_bold, record.back_italic),
        ),
        repeat_by_typing=record.repeat_by_typing,
        card_id=record.uid,
    )
    card.learned = record.learned
    card.learned_timestamp = record.learned_at
    return card


class LessonStore:
    """Reads and writes lessons through an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _record(self, name: str, with_cards: bool = False) -> LessonRecord:
        stmt = select(LessonRecord).where(LessonRecord.name == name)
        if with_cards:
            stmt = stmt.options(selectinload(LessonRecord.cards)).execution_options(
                populate_existing=True
            )
        record = (await self.db.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise LessonNotFound(f"no lesson named {name!r}")
        return record

    async def exists(self, name: str) -> bool:
        stmt = select(LessonRecord.id).where(LessonRecord.name == name)
        return (await self.db.execute(stmt)).scalar_one_or_none() is not None

    async def list_names(self) -> list[str]:
        result = await self.db.execute(select(LessonRecord.name).order_by(LessonRecord.name))
        return list(result.scalars().all())

    async def create(self, name: str, description: str = "") -> Lesson:
        """Store a new, empty lesson and return it."""
        if await self.exists(name):
            raise LessonExists(f"lesson {name!r} already exists")
        self.db.add(LessonRecord(name=name, description=description))
        await self.db.commit()
        logger.info("Created lesson %r", name)
        return Lesson(description)

    async def save(self, name: str, lesson: Lesson) -> int:
        """Replace the stored cards of ``name`` with the lesson's; return the card count."""
        record = await self._record(name)
        record.description = lesson.description
        record.long_term_batch_count = lesson.number_of_long_term_batches

        await self.db.execute(delete(CardRecord).where(CardRecord.lesson_id == record.id))

        unlearned = (
            lesson.unlearned_batch.cards
            + lesson.ultra_short_term_list.cards
            + lesson.short_term_list.cards
        )
        rows = [card_to_record(card, record.id, i, None) for i, card in enumerate(unlearned)]
        for batch in lesson.long_term_batches:
            rows += [card_to_record(card, record.id, i, batch.number) for i, card in enumerate(batch)]
        self.db.add_all(rows)
        await self.db.commit()

        logger.info(
            "Saved lesson %r: %d cards in %d long-term batches",
            name,
            len(rows),
            record.long_term_batch_count,
        )
        return len(rows)

    async def load(self, name: str) -> Lesson:
        record = await self._record(name, with_cards=True)
        lesson = Lesson(record.description)
        if record.long_term_batch_count > 0:
            lesson.ensure_long_term_batch(record.long_term_batch_count - 1)

        rows = sorted(
            record.cards,
            key=lambda r: (r.batch_number is not None, r.batch_number or 0, r.position),
        )
        for row in rows:
            card = record_to_card(row)
            if row.batch_number is None:
                lesson.unlearned_batch.add_card(card)
            else:
                lesson.ensure_long_term_batch(row.batch_number).add_card(card)

        logger.debug("Loaded lesson %r: %r", name, lesson)
        return lesson

    async def delete(self, name: str) -> None:
        record = await self._record(name, with_cards=True)
        await self.db.delete(record)
        await self.db.commit()
        logger.info("Deleted lesson %r", name)
