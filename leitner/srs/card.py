"""Flashcards and their sides.

A card keeps its scheduling state (learned flag, learned timestamp,
long-term rank, typing mode) next to the two sides. Batches hold cards by
identity, so two cards with the same text are still different cards.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class CardElement(Enum):
    """The parts of a card a search can target."""

    FRONT_SIDE = "front"
    REVERSE_SIDE = "reverse"
    BOTH_SIDES = "both"


@dataclass
class Font:
    """Display font of one card side."""

    family: str = ""
    size: int = 12
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class SearchHit:
    """One match of a search pattern on a card side."""

    element: CardElement
    index: int
    length: int


@dataclass
class CardSide:
    """One side of a card with its font and current search hits."""

    text: str = ""
    font: Font = field(default_factory=Font)
    search_hits: list[SearchHit] = field(default_factory=list)

    def search(self, element: CardElement, pattern: str, match_case: bool) -> list[SearchHit]:
        """Record and return every occurrence of ``pattern`` in this side."""
        self.search_hits = []
        if not pattern:
            return []

        haystack = self.text if match_case else self.text.lower()
        needle = pattern if match_case else pattern.lower()
        start = haystack.find(needle)
        while start != -1:
            self.search_hits.append(SearchHit(element, start, len(needle)))
            start = haystack.find(needle, start + 1)
        return list(self.search_hits)

    def cancel_search(self) -> None:
        self.search_hits = []


class Card:
    """A two-sided flashcard.

    ``long_term_batch_number`` is only meaningful while the card sits in a
    long-term batch; the batch sets it on insertion.
    """

    def __init__(
        self,
        front: CardSide | str,
        reverse: CardSide | str,
        *,
        repeat_by_typing: bool = False,
        card_id: str | None = None,
    ) -> None:
        self.front_side = front if isinstance(front, CardSide) else CardSide(front)
        self.reverse_side = reverse if isinstance(reverse, CardSide) else CardSide(reverse)
        self.repeat_by_typing = repeat_by_typing
        self.id = card_id or uuid.uuid4().hex
        self.learned = False
        self.learned_timestamp: datetime | None = None
        self.long_term_batch_number = 0

    def __repr__(self) -> str:
        return f"Card({self.front_side.text!r}, {self.reverse_side.text!r}, id={self.id})"

    @property
    def front_text(self) -> str:
        return self.front_side.text

    @property
    def reverse_text(self) -> str:
        return self.reverse_side.text

    def set_texts(self, front: str, reverse: str) -> None:
        self.front_side.text = front
        self.reverse_side.text = reverse

    def set_learned(self, learned: bool, now: datetime) -> None:
        """Set the learned flag; becoming learned stamps ``now``."""
        self.learned = learned
        if learned:
            self.learned_timestamp = now

    def update_learned_timestamp(self, now: datetime) -> None:
        """Restart the retention clock, e.g. after moving up a long-term rank."""
        self.learned_timestamp = now

    def flip(self) -> None:
        self.front_side, self.reverse_side = self.reverse_side, self.front_side

    def search(self, element: CardElement, pattern: str, match_case: bool = False) -> list[SearchHit]:
        """Search one or both sides. Searching one side clears the other."""
        hits: list[SearchHit] = []
        if element is CardElement.FRONT_SIDE:
            hits.extend(self.front_side.search(CardElement.FRONT_SIDE, pattern, match_case))
            self.reverse_side.cancel_search()
        elif element is CardElement.REVERSE_SIDE:
            self.front_side.cancel_search()
            hits.extend(self.reverse_side.search(CardElement.REVERSE_SIDE, pattern, match_case))
        else:
            hits.extend(self.front_side.search(CardElement.FRONT_SIDE, pattern, match_case))
            hits.extend(self.reverse_side.search(CardElement.REVERSE_SIDE, pattern, match_case))
        return hits

    @property
    def search_hits(self) -> list[SearchHit]:
        return self.front_side.search_hits + self.reverse_side.search_hits

    def stop_searching(self) -> None:
        self.front_side.cancel_search()
        self.reverse_side.cancel_search()
