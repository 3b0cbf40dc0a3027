"""Generation events and their error audit trail."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.config import utcnow
from backend.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Generation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One successful call to the suggestion model for a deck.

    ``accepted_cards_count`` stays NULL until the suggestions are committed,
    and is written exactly once.
    """

    __tablename__ = "generations"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    deck_id: Mapped[str] = mapped_column(
        ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    generated_cards_count: Mapped[int] = mapped_column(Integer, nullable=False)
    accepted_cards_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    deck: Mapped["Deck"] = relationship(back_populates="generations")  # type: ignore[name-defined] # noqa: F821
    flashcards: Mapped[list["Flashcard"]] = relationship(back_populates="generation")  # type: ignore[name-defined] # noqa: F821

    @property
    def is_committed(self) -> bool:
        return self.accepted_cards_count is not None


class GenerationErrorLog(Base, UUIDPrimaryKeyMixin):
    """Append-only record of a failed generation attempt."""

    __tablename__ = "generation_errors"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    deck_id: Mapped[str | None] = mapped_column(
        ForeignKey("decks.id", ondelete="SET NULL"), nullable=True
    )
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
