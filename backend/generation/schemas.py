"""Structured-output schema for flashcard suggestions."""

from pydantic import BaseModel, ConfigDict, Field

from backend.models.flashcard import BACK_MAX_LENGTH, FRONT_MAX_LENGTH


class SuggestedFlashcard(BaseModel):
    """A candidate flashcard. Never persisted until the user commits it.

    The length limits are advertised in the JSON schema sent to the model but
    not enforced here; the service clips over-long sides instead of rejecting
    the whole response.
    """

    model_config = ConfigDict(frozen=True)

    front: str = Field(
        description="The question or term on the front of the flashcard.",
        json_schema_extra={"maxLength": FRONT_MAX_LENGTH},
    )
    back: str = Field(
        description="The answer or definition on the back of the flashcard.",
        json_schema_extra={"maxLength": BACK_MAX_LENGTH},
    )


class FlashcardSuggestions(BaseModel):
    flashcards: list[SuggestedFlashcard] = Field(
        min_length=1,
        max_length=20,
        description="An array of 3-10 flashcard suggestions based on the provided text.",
    )
