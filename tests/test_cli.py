"""Tests for CLI commands (non-interactive paths) and the terminal session loop."""

import uuid
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

import pytest

from leitner.config import Settings, utcnow
from leitner.database import async_session
from leitner.srs.card import Card
from leitner.srs.expiration import RetentionSchedule
from leitner.srs.lesson import Lesson, Tier, TierKind
from leitner.srs.phases import LearningPhase
from leitner.srs.session import LearningSession
from leitner.store import LessonNotFound, LessonStore
from leitner_cli.__main__ import add_cards, ensure_db, format_stats, read_card_file, run_session


def _scripted(answers: list[str]) -> Callable[[str], str]:
    """A prompt that replays ``answers`` in order."""
    replies = iter(answers)
    return lambda _text: next(replies)


def _no_sleep(_seconds: float) -> None:
    pass


def _lesson(*pairs: tuple[str, str]) -> Lesson:
    lesson = Lesson()
    for front, back in pairs:
        lesson.add_card(Card(front, back))
    return lesson


# --- Database commands ---


@pytest.mark.asyncio
async def test_ensure_db() -> None:
    """Database tables can be created."""
    await ensure_db()


@pytest.mark.asyncio
async def test_add_cards() -> None:
    """Cards are appended to the stored lesson's unlearned pool."""
    await ensure_db()
    name = f"lesson-{uuid.uuid4().hex[:8]}"
    async with async_session() as db:
        await LessonStore(db).create(name)

    count = await add_cards(name, [("hola", "hello"), ("perro", "dog")], repeat_by_typing=True)
    assert count == 2
    await add_cards(name, [("gato", "cat")])

    async with async_session() as db:
        lesson = await LessonStore(db).load(name)
    assert [card.front_text for card in lesson.unlearned_batch] == ["hola", "perro", "gato"]
    assert [card.repeat_by_typing for card in lesson.unlearned_batch] == [True, True, False]


@pytest.mark.asyncio
async def test_add_cards_to_missing_lesson() -> None:
    await ensure_db()
    with pytest.raises(LessonNotFound):
        await add_cards(f"missing-{uuid.uuid4().hex[:8]}", [("a", "b")])


# --- Card files ---


def test_read_csv(tmp_path: Path) -> None:
    path = tmp_path / "words.csv"
    path.write_text('hola,hello\n"casa, grande",big house\n\n', encoding="utf-8")
    assert read_card_file(path) == [("hola", "hello"), ("casa, grande", "big house")]


def test_read_tsv(tmp_path: Path) -> None:
    path = tmp_path / "words.tsv"
    path.write_text("hola\thello, hi\nperro\tdog\n", encoding="utf-8")
    assert read_card_file(path) == [("hola", "hello, hi"), ("perro", "dog")]


def test_read_bad_row(tmp_path: Path) -> None:
    path = tmp_path / "words.csv"
    path.write_text("hola,hello\nlonely\n", encoding="utf-8")
    with pytest.raises(ValueError, match=":2:"):
        read_card_file(path)


def test_read_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_card_file(tmp_path / "nope.csv")


def test_format_stats() -> None:
    lesson = _lesson(("a", "b"))
    card = Card("c", "d")
    lesson.ensure_long_term_batch(1).add_card(card)
    card.set_learned(True, utcnow() - timedelta(days=30))

    lines = format_stats(lesson, RetentionSchedule(1.0, 2.0))

    assert len(lines) == 4
    assert "2" in lines[0]
    assert "Batch 0 (1.0d)" in lines[2]
    assert "1 cards, 1 expired" in lines[3]


# --- Terminal session loop ---


class TestRunSession:
    def setup_method(self) -> None:
        self.settings = Settings(ustm_seconds=60, stm_minutes=1)

    def test_simple_learning(self) -> None:
        lesson = _lesson(("hola", "hello"), ("perro", "dog"))
        session = LearningSession(self.settings, lesson)
        session.start_simple_learning()

        judged = run_session(session, _scripted(["y", "n"]), _no_sleep)

        assert judged == 2
        assert session.finished
        assert lesson.long_term_batch(0).cards[0].front_text == "hola"
        assert [card.front_text for card in lesson.unlearned_batch] == ["perro"]

    def test_full_learning_with_skips(self) -> None:
        lesson = _lesson(("hola", "hello"))
        session = LearningSession(self.settings, lesson)
        session.start_learning()

        judged = run_session(session, _scripted(["", "s", "", "y", "s", "", "y"]), _no_sleep)

        assert judged == 3
        assert session.finished
        card = lesson.long_term_batch(0).cards[0]
        assert card.learned

    def test_quit_leaves_session_running(self) -> None:
        session = LearningSession(self.settings, _lesson(("hola", "hello")))
        session.start_learning()

        assert run_session(session, _scripted(["q"]), _no_sleep) == 0
        assert not session.finished
        assert session.phase is LearningPhase.FILLING_USTM

    def test_edit_card(self) -> None:
        lesson = _lesson(("hola", "hello"))
        session = LearningSession(self.settings, lesson)
        session.start_learning()

        run_session(session, _scripted(["e", "buenos dias", "", "q"]), _no_sleep)

        card = lesson.unlearned_batch.cards[0]
        assert card.front_text == "buenos dias"
        assert card.reverse_text == "hello"

    def test_delete_card(self) -> None:
        lesson = _lesson(("hola", "hello"))
        session = LearningSession(self.settings, lesson)
        session.start_learning()

        run_session(session, _scripted(["d", "q"]), _no_sleep)

        assert len(lesson) == 0
        assert session.phase is LearningPhase.WAITING_FOR_USTM

    def test_typed_answer(self) -> None:
        lesson = Lesson()
        card = Card("hola", "hello", repeat_by_typing=True)
        lesson.ensure_long_term_batch(0).add_card(card)
        card.set_learned(True, utcnow() - timedelta(days=5))
        session = LearningSession(self.settings, lesson)
        session.start_repeating()

        judged = run_session(session, _scripted(["Hello", ""]), _no_sleep)

        assert judged == 1
        assert session.finished
        assert lesson.locate(card) == Tier(TierKind.LONG_TERM, 1)
