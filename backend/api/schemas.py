"""Pydantic schemas for API request/response models.

JSON bodies use camelCase; the aliases are generated from the snake_case
field names.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from backend.models.flashcard import BACK_MAX_LENGTH, FRONT_MAX_LENGTH


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


FrontText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=FRONT_MAX_LENGTH)]
BackText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=BACK_MAX_LENGTH)]

# --- Generation ---


class GenerateFlashcardsRequest(CamelModel):
    """Request to generate flashcard suggestions from source text."""

    deck_id: UUID
    text: str = Field(min_length=1, max_length=5000)


class FlashcardContent(CamelModel):
    front: str
    back: str


class SuggestedFlashcardsResponse(CamelModel):
    """Suggestions plus the generation id needed to commit them."""

    generation_id: str
    suggested_flashcards: list[FlashcardContent]


# --- Flashcards ---


class CreateFlashcardRequest(CamelModel):
    front: FrontText
    back: BackText


class BulkCreateFlashcardsRequest(CamelModel):
    """Curated suggestions to persist for one generation."""

    generation_id: UUID
    flashcards: list[CreateFlashcardRequest] = Field(min_length=1, max_length=100)


class BulkCreateFlashcardsResponse(CamelModel):
    cards_added: int
    cards_skipped: int
    deck_total_flashcards: int


class FlashcardResponse(CamelModel):
    id: str
    deck_id: str
    front: str
    back: str
    created_at: datetime
    updated_at: datetime


# --- Study ---


class StudySessionResponse(CamelModel):
    """Current state of a study session."""

    session_id: str
    deck_id: str
    current_index: int
    position: int
    total_cards: int
    is_flipped: bool
    is_complete: bool
    current_card: FlashcardResponse | None = None
