"""Learning-phase scheduler: cards, tiers, migration and the session controller."""

from leitner.srs.card import Card, CardElement, CardSide, Font, SearchHit
from leitner.srs.errors import (
    InvariantViolation,
    NoLessonLoaded,
    PackPositionError,
    PhaseStabilizationError,
    SchedulerError,
    UnsupportedTransition,
)
from leitner.srs.expiration import RetentionSchedule
from leitner.srs.lesson import Batch, BatchStatistics, Lesson, LongTermBatch, Tier, TierKind
from leitner.srs.phases import LearningPhase
from leitner.srs.session import LearningSession, Outcome

__all__ = [
    "Batch",
    "BatchStatistics",
    "Card",
    "CardElement",
    "CardSide",
    "Font",
    "InvariantViolation",
    "LearningPhase",
    "LearningSession",
    "Lesson",
    "LongTermBatch",
    "NoLessonLoaded",
    "Outcome",
    "PackPositionError",
    "PhaseStabilizationError",
    "RetentionSchedule",
    "SchedulerError",
    "SearchHit",
    "Tier",
    "TierKind",
    "UnsupportedTransition",
]
