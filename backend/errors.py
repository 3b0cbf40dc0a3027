"""Domain exceptions raised by the deck store and the generation pipeline."""

from enum import Enum


class DeckNotFoundError(Exception):
    """The deck does not exist or belongs to another user.

    The two cases are deliberately indistinguishable to the caller.
    """

    def __init__(self, message: str = "Deck not found") -> None:
        super().__init__(message)
        self.message = message


class DeckCapacityError(Exception):
    """The deck already holds the maximum number of flashcards."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.message = f"This deck has reached the maximum limit of {limit} flashcards"
        super().__init__(self.message)


class GenerationNotFoundError(Exception):
    def __init__(self, message: str = "Generation not found or doesn't belong to this deck") -> None:
        super().__init__(message)
        self.message = message


class GenerationAlreadyProcessedError(Exception):
    """The generation's suggestions were already committed once."""

    def __init__(self, message: str = "This generation has already been processed") -> None:
        super().__init__(message)
        self.message = message


class GenerationFailure(str, Enum):
    """Why a suggestion request failed."""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    VALIDATION = "validation"
    EMPTY = "empty"
    API = "api"
    PERSISTENCE = "persistence"
    UNEXPECTED = "unexpected"


# The user may try again later; nothing retries automatically.
RETRYABLE_FAILURES = frozenset({GenerationFailure.RATE_LIMIT, GenerationFailure.NETWORK})


class GenerationError(Exception):
    """A suggestion request failed. ``message`` is safe to show to users."""

    def __init__(self, reason: GenerationFailure, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.reason in RETRYABLE_FAILURES

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason.value, "retryable": self.retryable}
