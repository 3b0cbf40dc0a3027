from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

FRONT_MAX_LENGTH = 200
BACK_MAX_LENGTH = 500


class Flashcard(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "flashcards"

    deck_id: Mapped[str] = mapped_column(
        ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    generation_id: Mapped[str | None] = mapped_column(
        ForeignKey("generations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    creation_type: Mapped[str] = mapped_column(String(20), nullable=False)  # manual, generated
    front: Mapped[str] = mapped_column(String(FRONT_MAX_LENGTH), nullable=False)
    back: Mapped[str] = mapped_column(String(BACK_MAX_LENGTH), nullable=False)

    deck: Mapped["Deck"] = relationship(back_populates="flashcards")  # type: ignore[name-defined] # noqa: F821
    generation: Mapped["Generation"] = relationship(back_populates="flashcards")  # type: ignore[name-defined] # noqa: F821
