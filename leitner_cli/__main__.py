"""CLI interface for the Leitner trainer.

Usage:
    python -m leitner_cli new "Spanish" -d "Basics"    Create a lesson
    python -m leitner_cli add "Spanish" "hola" "hello" Add a card
    python -m leitner_cli import "Spanish" words.csv   Import cards (CSV/TSV)
    python -m leitner_cli lessons                      List lessons
    python -m leitner_cli stats "Spanish"              Show batch statistics
    python -m leitner_cli learn "Spanish"              Learn new cards (USTM/STM)
    python -m leitner_cli learn "Spanish" --simple     Learn without timers
    python -m leitner_cli repeat "Spanish"             Repeat expired cards
    python -m leitner_cli browse "Spanish" --batch 1   List the cards of a batch
    python -m leitner_cli forget "Spanish"             Forget all cards
"""

import argparse
import asyncio
import csv
import logging
import time
from collections.abc import Callable
from pathlib import Path

from leitner.config import settings, utcnow
from leitner.database import async_session, engine, ensure_database_dir
from leitner.models import Base
from leitner.srs.card import Card
from leitner.srs.expiration import RetentionSchedule
from leitner.srs.lesson import Lesson
from leitner.srs.phases import WAITING_PHASES, LearningPhase
from leitner.srs.session import LearningSession
from leitner.store import LessonExists, LessonNotFound, LessonStore

logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    ensure_database_dir()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def read_card_file(path: Path) -> list[tuple[str, str]]:
    """Read (front, back) pairs from a CSV or tab-separated file."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    delimiter = "\t" if path.suffix.lower() in (".tsv", ".txt") else ","
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        rows = [row for row in csv.reader(f, delimiter=delimiter) if row]
    pairs = []
    for line_no, row in enumerate(rows, 1):
        if len(row) < 2:
            raise ValueError(f"{path}:{line_no}: expected two columns, got {len(row)}")
        pairs.append((row[0].strip(), row[1].strip()))
    return pairs


async def add_cards(name: str, pairs: list[tuple[str, str]], repeat_by_typing: bool = False) -> int:
    """Append new cards to the unlearned pool of a stored lesson."""
    async with async_session() as db:
        store = LessonStore(db)
        lesson = await store.load(name)
        for front, back in pairs:
            lesson.add_card(Card(front, back, repeat_by_typing=repeat_by_typing))
        await store.save(name, lesson)
    return len(pairs)


def format_stats(lesson: Lesson, schedule: RetentionSchedule) -> list[str]:
    now = utcnow()
    lines = [
        f"  {'Total cards:':<20} {len(lesson)}",
        f"  {'Unlearned:':<20} {len(lesson.unlearned_batch)}",
    ]
    for rank, stats in enumerate(lesson.batch_statistics(schedule, now)):
        interval = schedule.interval(rank).total_seconds() / 86400
        lines.append(
            f"  {f'Batch {rank} ({interval:.1f}d):':<20} "
            f"{stats.number_of_cards} cards, {stats.expired_cards} expired"
        )
    return lines


def _show_card(session: LearningSession, card: Card, reveal: bool) -> None:
    question, answer = card.front_text, card.reverse_text
    if session.sides_flipped:
        question, answer = answer, question
    print(f"\n  [{session.position + 1}/{len(session.pack)}] {session.phase}")
    print(f"  Q: {question}")
    if reveal:
        print(f"  A: {answer}")


def _edit(session: LearningSession, prompt: Prompt) -> None:
    card = session.current_card
    front = prompt(f"  Front [{card.front_text}]: ").strip() or card.front_text
    back = prompt(f"  Back [{card.reverse_text}]: ").strip() or card.reverse_text
    session.edit_current_card(front, back)


def run_session(
    session: LearningSession,
    prompt: Prompt = input,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Drive a started session from the terminal; return how many cards were judged."""
    judged = 0
    while not session.finished and session.phase is not LearningPhase.NOTHING:
        phase = session.phase

        if phase in WAITING_PHASES:
            timer = session.ustm_timer if phase is LearningPhase.WAITING_FOR_USTM else session.stm_timer
            counts = session.counts()
            print(f"\n  USTM: {counts.ustm}  STM: {counts.stm}  waiting {timer.remaining:.0f}s")
            choice = prompt("  [enter]=wait  s=skip  q=quit: ").strip().lower()
            if choice == "q":
                break
            if choice == "s":
                session.skip_waiting()
            else:
                sleep(timer.remaining)
                session.tick()
            continue

        card = session.current_card
        if card is None:
            session.tick()
            continue

        filling = phase is LearningPhase.FILLING_USTM
        _show_card(session, card, reveal=filling or phase is LearningPhase.SIMPLE_LEARNING)

        if filling:
            choice = prompt("  [enter]=next  e=edit  d=delete  q=quit: ").strip().lower()
        elif card.repeat_by_typing and phase is not LearningPhase.SIMPLE_LEARNING:
            answer = prompt("  Your answer (or :e/:d/:q): ").strip()
            choice = {":e": "e", ":d": "d", ":q": "q"}.get(answer, "")
            if not choice:
                assessment = session.typed_answer_matches(answer)
                print(f"  {assessment.feedback}")
                default = "y" if assessment.correct else "n"
                choice = prompt(f"  Remembered? [y/n, enter={default}]: ").strip().lower() or default
        else:
            if phase is not LearningPhase.SIMPLE_LEARNING:
                prompt("  [enter]=show answer ")
                _show_card(session, card, reveal=True)
            choice = prompt("  Remembered? y/n  e=edit  d=delete  q=quit: ").strip().lower()

        if choice == "q":
            break
        if choice == "e":
            _edit(session, prompt)
        elif choice == "d":
            session.delete_current_card()
        elif filling:
            session.next_card()
            judged += 1
        elif choice in ("y", "n"):
            session.judge(choice == "y")
            judged += 1

    return judged


async def _run_learning(name: str, mode: str) -> None:
    await ensure_db()
    async with async_session() as db:
        store = LessonStore(db)
        lesson = await store.load(name)
        session = LearningSession(settings, lesson)

        if mode == "simple":
            outcome = session.start_simple_learning()
        elif mode == "repeat":
            outcome = session.start_repeating()
        else:
            outcome = session.start_learning()

        if outcome.finished:
            print("\n  Nothing to do here. You're all caught up!")
            return

        judged = run_session(session)
        if not session.finished:
            print("\n  Session ended early.")
            session.stop()

        await store.save(name, lesson)
        print(f"\n  Session complete: {judged} cards judged, lesson saved.\n")


async def cmd_new(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        try:
            await LessonStore(db).create(args.name, args.description)
        except LessonExists as e:
            print(f"  {e}")
            return
    print(f"  Created lesson '{args.name}'.")


async def cmd_add(args: argparse.Namespace) -> None:
    await ensure_db()
    await add_cards(args.lesson, [(args.front, args.back)], repeat_by_typing=args.typing)
    print(f"  Added 1 card to '{args.lesson}'.")


async def cmd_import(args: argparse.Namespace) -> None:
    await ensure_db()
    count = await add_cards(args.lesson, read_card_file(Path(args.file)), repeat_by_typing=args.typing)
    print(f"  Imported {count} cards into '{args.lesson}'.")


async def cmd_lessons(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        names = await LessonStore(db).list_names()
    if not names:
        print("  No lessons yet. Create one with 'new'.")
    for name in names:
        print(f"  {name}")


async def cmd_stats(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        lesson = await LessonStore(db).load(args.lesson)

    print(f"\n  {args.lesson}: {lesson.description}")
    for line in format_stats(lesson, RetentionSchedule.from_settings(settings)):
        print(line)
    print()


async def cmd_learn(args: argparse.Namespace) -> None:
    await _run_learning(args.lesson, "simple" if args.simple else "learn")


async def cmd_repeat(args: argparse.Namespace) -> None:
    await _run_learning(args.lesson, "repeat")


async def cmd_browse(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        lesson = await LessonStore(db).load(args.lesson)
    try:
        cards = lesson.batch_cards(args.batch)
    except IndexError:
        print(f"  '{args.lesson}' has no batch {args.batch}.")
        return
    for card in cards:
        print(f"  {card.front_text:<30} {card.reverse_text}")
    print(f"\n  {len(cards)} cards")


async def cmd_forget(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        store = LessonStore(db)
        lesson = await store.load(args.lesson)
        lesson.reset()
        await store.save(args.lesson, lesson)
    print(f"  All cards of '{args.lesson}' are unlearned again.")


def main() -> None:
    """Entry point for the Leitner trainer CLI."""
    parser = argparse.ArgumentParser(
        prog="leitner",
        description="Leitner flashcard trainer",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # new
    new_parser = subparsers.add_parser("new", help="Create a lesson")
    new_parser.add_argument("name", help="Lesson name")
    new_parser.add_argument("-d", "--description", default="", help="Lesson description")

    # add
    add_parser = subparsers.add_parser("add", help="Add a card to a lesson")
    add_parser.add_argument("lesson", help="Lesson name")
    add_parser.add_argument("front", help="Front side text")
    add_parser.add_argument("back", help="Back side text")
    add_parser.add_argument("--typing", action="store_true", help="Repeat by typing the answer")

    # import
    import_parser = subparsers.add_parser("import", help="Import cards from a CSV/TSV file")
    import_parser.add_argument("lesson", help="Lesson name")
    import_parser.add_argument("file", help="File with front,back rows")
    import_parser.add_argument("--typing", action="store_true", help="Repeat by typing the answer")

    # lessons
    subparsers.add_parser("lessons", help="List lessons")

    # stats
    stats_parser = subparsers.add_parser("stats", help="Show batch statistics")
    stats_parser.add_argument("lesson", help="Lesson name")

    # learn
    learn_parser = subparsers.add_parser("learn", help="Learn new cards")
    learn_parser.add_argument("lesson", help="Lesson name")
    learn_parser.add_argument(
        "--simple", action="store_true", help="Skip the USTM/STM phases and timers"
    )

    # repeat
    repeat_parser = subparsers.add_parser("repeat", help="Repeat expired cards")
    repeat_parser.add_argument("lesson", help="Lesson name")

    # browse
    browse_parser = subparsers.add_parser("browse", help="List the cards of a batch")
    browse_parser.add_argument("lesson", help="Lesson name")
    browse_parser.add_argument(
        "-b", "--batch", type=int, default=0,
        help="0=all cards, 1=unlearned, 2+=long-term batch (default: 0)",
    )

    # forget
    forget_parser = subparsers.add_parser("forget", help="Forget all cards of a lesson")
    forget_parser.add_argument("lesson", help="Lesson name")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "new": cmd_new,
        "add": cmd_add,
        "import": cmd_import,
        "lessons": cmd_lessons,
        "stats": cmd_stats,
        "learn": cmd_learn,
        "repeat": cmd_repeat,
        "browse": cmd_browse,
        "forget": cmd_forget,
    }

    try:
        asyncio.run(cmd_map[args.command](args))
    except LessonNotFound as e:
        print(f"  {e}")


if __name__ == "__main__":
    main()
