"""SQLAlchemy ORM models for the Flashdeck database."""

from backend.models.base import Base
from backend.models.deck import Deck
from backend.models.flashcard import Flashcard
from backend.models.generation import Generation, GenerationErrorLog

__all__ = ["Base", "Deck", "Flashcard", "Generation", "GenerationErrorLog"]
