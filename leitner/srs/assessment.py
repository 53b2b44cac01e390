"""Checking typed answers.

Cards marked "repeat by typing" are judged by comparing what the learner
typed with the expected side. The result only suggests remembered/forgot;
the learner's judgment still drives the card move.
"""

import logging
import unicodedata
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ZERO_WIDTH_CHARS = ["\u200b", "\u200c", "\u200d", "\ufeff"]


@dataclass
class Assessment:
    """The result of comparing a typed answer with the card."""

    correct: bool
    expected: str
    actual: str
    feedback: str


def normalize_for_comparison(text: str, case_sensitive: bool = False) -> str:
    """Normalize text for comparison.

    - Unicode NFC normalization
    - Strip surrounding whitespace
    - Remove zero-width characters
    - Lowercase unless ``case_sensitive``
    """
    text = unicodedata.normalize("NFC", text.strip())
    for char in ZERO_WIDTH_CHARS:
        text = text.replace(char, "")
    if not case_sensitive:
        text = text.casefold()
    return text.strip()


def check_typed_answer(answer: str, expected: str, case_sensitive: bool = False) -> Assessment:
    """Compare a typed answer with the expected card text."""
    correct = normalize_for_comparison(answer, case_sensitive) == normalize_for_comparison(
        expected, case_sensitive
    )
    if not correct:
        logger.debug("Typed answer %r does not match %r", answer, expected)
    return Assessment(
        correct=correct,
        expected=expected,
        actual=answer,
        feedback="Correct!" if correct else f"Expected: {expected}",
    )
