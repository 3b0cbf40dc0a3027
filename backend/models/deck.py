from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Deck(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A named collection of flashcards owned by a single user."""

    __tablename__ = "decks"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    flashcards: Mapped[list["Flashcard"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="deck",
        cascade="all, delete-orphan",
    )
    generations: Mapped[list["Generation"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="deck",
        cascade="all, delete-orphan",
    )
