"""Tests for pushing and pulling cards between tiers."""

import random
from datetime import datetime, timedelta

import pytest

from leitner.config import ReturnPosition
from leitner.srs.card import Card
from leitner.srs.errors import UnsupportedTransition
from leitner.srs.lesson import Lesson, Tier, TierKind
from leitner.srs.migration import pull, push, return_to_unlearned
from leitner.srs.phases import LearningPhase

NOW = datetime(2024, 1, 1, 12, 0, 0)
P = LearningPhase


def _tier_count(lesson: Lesson, card: Card) -> int:
    """How many collections hold the card."""
    batches = [lesson.unlearned_batch, lesson.ultra_short_term_list, lesson.short_term_list]
    batches += lesson.long_term_batches
    return sum(1 for batch in batches if card in batch)


class TestPush:
    def setup_method(self) -> None:
        self.lesson = Lesson()
        self.card = Card("front", "back")
        self.lesson.add_card(self.card)

    def test_simple_learning_goes_to_rank_zero(self) -> None:
        push(self.lesson, self.card, P.SIMPLE_LEARNING, NOW)
        assert self.lesson.locate(self.card) == Tier(TierKind.LONG_TERM, 0)
        assert self.card.learned
        assert self.card.learned_timestamp == NOW

    def test_filling_goes_to_ustm_unlearned(self) -> None:
        push(self.lesson, self.card, P.FILLING_USTM, NOW)
        assert self.lesson.locate(self.card) == Tier(TierKind.USTM)
        assert not self.card.learned

    def test_full_ladder(self) -> None:
        push(self.lesson, self.card, P.FILLING_USTM, NOW)
        push(self.lesson, self.card, P.REPEATING_USTM, NOW)
        assert self.lesson.locate(self.card) == Tier(TierKind.STM)
        assert not self.card.learned

        push(self.lesson, self.card, P.REPEATING_STM, NOW)
        assert self.lesson.locate(self.card) == Tier(TierKind.LONG_TERM, 0)
        assert self.card.learned

        later = NOW + timedelta(days=2)
        push(self.lesson, self.card, P.REPEATING_LTM, later)
        assert self.lesson.locate(self.card) == Tier(TierKind.LONG_TERM, 1)
        assert self.card.long_term_batch_number == 1
        assert self.card.learned_timestamp == later
        assert _tier_count(self.lesson, self.card) == 1

    def test_ltm_push_creates_next_rank(self) -> None:
        push(self.lesson, self.card, P.SIMPLE_LEARNING, NOW)
        assert self.lesson.number_of_long_term_batches == 1
        push(self.lesson, self.card, P.REPEATING_LTM, NOW)
        assert self.lesson.number_of_long_term_batches == 2

    @pytest.mark.parametrize(
        "phase", [P.NOTHING, P.BROWSE_NEW, P.WAITING_FOR_USTM, P.WAITING_FOR_STM]
    )
    def test_unsupported_phases(self, phase: LearningPhase) -> None:
        with pytest.raises(UnsupportedTransition):
            push(self.lesson, self.card, phase, NOW)
        assert self.lesson.locate(self.card) == Tier(TierKind.UNLEARNED)

    def test_missing_card_still_lands(self, caplog: pytest.LogCaptureFixture) -> None:
        stray = Card("stray", "card")
        push(self.lesson, stray, P.FILLING_USTM, NOW)
        assert self.lesson.locate(stray) == Tier(TierKind.USTM)
        assert "was not found" in caplog.text

    def test_missing_rank_still_lands_one_rank_up(self, caplog: pytest.LogCaptureFixture) -> None:
        stray = Card("stray", "card")
        stray.long_term_batch_number = 3
        stray.set_learned(True, NOW)

        later = NOW + timedelta(days=1)
        push(self.lesson, stray, P.REPEATING_LTM, later)

        assert self.lesson.locate(stray) == Tier(TierKind.LONG_TERM, 4)
        assert stray.learned_timestamp == later
        assert "long-term batch 3" in caplog.text

    def test_card_missing_from_existing_rank_still_moves_up(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        self.lesson.ensure_long_term_batch(0)
        stray = Card("stray", "card")
        push(self.lesson, stray, P.REPEATING_LTM, NOW)
        assert self.lesson.locate(stray) == Tier(TierKind.LONG_TERM, 1)
        assert "was not found" in caplog.text


class TestPull:
    def setup_method(self) -> None:
        self.lesson = Lesson()
        self.first = Card("first", "1")
        self.card = Card("front", "back")
        self.lesson.add_card(self.first)
        self.lesson.add_card(self.card)

    def test_simple_learning_is_a_no_op(self) -> None:
        pull(self.lesson, self.card, P.SIMPLE_LEARNING)
        assert self.lesson.unlearned_batch.cards == [self.first, self.card]

    def test_ustm_pull_restores_unlearned(self) -> None:
        push(self.lesson, self.card, P.FILLING_USTM, NOW)
        pull(self.lesson, self.card, P.REPEATING_USTM)
        assert self.lesson.locate(self.card) == Tier(TierKind.UNLEARNED)
        assert not self.card.learned
        assert len(self.lesson.ultra_short_term_list) == 0
        assert self.lesson.unlearned_batch.cards[0] is self.card

    def test_stm_pull(self) -> None:
        push(self.lesson, self.card, P.FILLING_USTM, NOW)
        push(self.lesson, self.card, P.REPEATING_USTM, NOW)
        pull(self.lesson, self.card, P.REPEATING_STM, ReturnPosition.APPEND)
        assert self.lesson.unlearned_batch.cards == [self.first, self.card]

    def test_ltm_pull_clears_learned(self) -> None:
        push(self.lesson, self.card, P.SIMPLE_LEARNING, NOW)
        push(self.lesson, self.card, P.REPEATING_LTM, NOW)
        pull(self.lesson, self.card, P.REPEATING_LTM)
        assert not self.card.learned
        assert self.lesson.locate(self.card) == Tier(TierKind.UNLEARNED)
        assert len(self.lesson.long_term_batch(1)) == 0

    @pytest.mark.parametrize(
        "phase", [P.NOTHING, P.BROWSE_NEW, P.FILLING_USTM, P.WAITING_FOR_USTM, P.WAITING_FOR_STM]
    )
    def test_unsupported_phases(self, phase: LearningPhase) -> None:
        with pytest.raises(UnsupportedTransition):
            pull(self.lesson, self.card, phase)

    def test_missing_card_is_still_returned(self, caplog: pytest.LogCaptureFixture) -> None:
        stray = Card("stray", "card")
        pull(self.lesson, stray, P.REPEATING_USTM)
        assert self.lesson.unlearned_batch.cards[0] is stray
        assert "was not found" in caplog.text

    def test_missing_rank_is_still_returned(self, caplog: pytest.LogCaptureFixture) -> None:
        stray = Card("stray", "card")
        stray.set_learned(True, NOW)
        assert self.lesson.number_of_long_term_batches == 0

        pull(self.lesson, stray, P.REPEATING_LTM)

        assert self.lesson.unlearned_batch.cards[0] is stray
        assert not stray.learned
        assert "long-term batch 0" in caplog.text


class TestReturnToUnlearned:
    def setup_method(self) -> None:
        self.lesson = Lesson()
        for i in range(4):
            self.lesson.add_card(Card(str(i), str(i)))
        self.card = Card("returned", "card")

    def test_prepend(self) -> None:
        return_to_unlearned(self.lesson, self.card, ReturnPosition.PREPEND)
        assert self.lesson.unlearned_batch.cards[0] is self.card

    def test_append(self) -> None:
        return_to_unlearned(self.lesson, self.card, ReturnPosition.APPEND)
        assert self.lesson.unlearned_batch.cards[-1] is self.card

    def test_random_is_seeded(self) -> None:
        expected_index = random.Random(5).randrange(4)
        return_to_unlearned(self.lesson, self.card, ReturnPosition.RANDOM, random.Random(5))
        assert self.lesson.unlearned_batch.cards.index(self.card) == expected_index

    def test_random_into_empty_pool(self) -> None:
        lesson = Lesson()
        return_to_unlearned(lesson, self.card, ReturnPosition.RANDOM, random.Random(1))
        assert lesson.unlearned_batch.cards == [self.card]
