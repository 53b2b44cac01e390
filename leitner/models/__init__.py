"""SQLAlchemy ORM models for the lesson store."""

from leitner.models.base import Base
from leitner.models.card import CardRecord
from leitner.models.lesson import LessonRecord

__all__ = ["Base", "CardRecord", "LessonRecord"]
