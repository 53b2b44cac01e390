"""Persisted card row, one per card in a lesson."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leitner.models.base import Base


class CardRecord(Base):
    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(String(32), nullable=False)
    lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # order within its batch
    batch_number: Mapped[int | None] = mapped_column(Integer, nullable=True)  # NULL = unlearned
    learned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    learned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    repeat_by_typing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    front_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    front_font_family: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    front_font_size: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    front_bold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    front_italic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    back_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    back_font_family: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    back_font_size: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    back_bold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    back_italic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    lesson: Mapped["LessonRecord"] = relationship(back_populates="cards")  # type: ignore[name-defined] # noqa: F821
