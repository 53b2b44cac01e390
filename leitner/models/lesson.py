"""Persisted lesson header: name, description and size of the long-term ladder."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leitner.models.base import Base, TimestampMixin


class LessonRecord(Base, TimestampMixin):
    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Empty ranks are kept so a reload restores the same ladder.
    long_term_batch_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    cards: Mapped[list["CardRecord"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="CardRecord.position",
    )
