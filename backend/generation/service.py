"""Flashcard generation pipeline.

Two phases:

1. ``suggest``: ask the completion model for flashcards from pasted text and
   record a Generation row. The suggestions themselves are returned, not
   stored.
2. ``commit``: persist the user's curated subset exactly once per
   generation. ``accepted_cards_count`` going from NULL to a number is the
   latch that makes a second commit fail.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.decks import (
    DEFAULT_MAX_FLASHCARDS_PER_DECK,
    clean_flashcard_text,
    count_flashcards,
    get_owned_deck,
)
from backend.errors import (
    GenerationAlreadyProcessedError,
    GenerationError,
    GenerationFailure,
    GenerationNotFoundError,
)
from backend.generation.schemas import FlashcardSuggestions, SuggestedFlashcard
from backend.llm_client import CompletionError, CompletionErrorKind, CompletionRequest
from backend.models.flashcard import BACK_MAX_LENGTH, FRONT_MAX_LENGTH, Flashcard
from backend.models.generation import Generation, GenerationErrorLog

logger = logging.getLogger(__name__)

MAX_SOURCE_TEXT_LENGTH = 5000

SUGGESTION_SYSTEM_PROMPT = """\
You are an expert educational content creator specializing in creating effective \
flashcards for studying.

Your task is to analyze the provided text and generate 3-10 high-quality flashcard pairs that:
- Cover the most important concepts, facts, or definitions from the text
- Use clear, concise language
- Have questions that test understanding, not just memorization
- Include complete, informative answers
- Are ordered from basic to more advanced concepts when possible

Generate between 3 and 10 flashcards depending on the amount and complexity of \
content in the provided text. Keep each front under 200 characters and each back \
under 500 characters."""

SUGGESTION_USER_PROMPT = """\
Create flashcards from the following text:

{text}"""

# Every CompletionErrorKind must appear here.
COMPLETION_FAILURES: dict[CompletionErrorKind, tuple[GenerationFailure, str]] = {
    CompletionErrorKind.CONFIGURATION: (
        GenerationFailure.CONFIGURATION,
        "Service configuration error. Please contact support.",
    ),
    CompletionErrorKind.AUTHENTICATION: (
        GenerationFailure.AUTHENTICATION,
        "AI service authentication failed. Please contact support.",
    ),
    CompletionErrorKind.RATE_LIMIT: (
        GenerationFailure.RATE_LIMIT,
        "AI service rate limit exceeded. Please try again in a few moments.",
    ),
    CompletionErrorKind.NETWORK: (
        GenerationFailure.NETWORK,
        "Network error connecting to AI service. Please check your connection and try again.",
    ),
    CompletionErrorKind.VALIDATION: (
        GenerationFailure.VALIDATION,
        "AI returned an unexpected response format. Please try again.",
    ),
    CompletionErrorKind.BAD_REQUEST: (
        GenerationFailure.API,
        "AI service error. Please try again.",
    ),
    CompletionErrorKind.API: (
        GenerationFailure.API,
        "AI service error. Please try again.",
    ),
}


def _clip_suggestion(front: str, back: str) -> SuggestedFlashcard:
    # Cut to the column limits; the user can still edit them during review.
    if len(front) > FRONT_MAX_LENGTH or len(back) > BACK_MAX_LENGTH:
        logger.warning("Clipping over-long suggestion (%d/%d chars)", len(front), len(back))
    return SuggestedFlashcard(front=front[:FRONT_MAX_LENGTH].rstrip(), back=back[:BACK_MAX_LENGTH].rstrip())


class CompletionClient(Protocol):
    async def complete(self, request: CompletionRequest) -> object: ...


class CardContent(Protocol):
    front: str
    back: str


@dataclass
class SuggestionResult:
    generation_id: str
    suggested_flashcards: list[SuggestedFlashcard]


@dataclass
class CommitResult:
    cards_added: int
    cards_skipped: int
    deck_total_flashcards: int


class GenerationService:
    """Runs the suggest and commit phases against one database session."""

    def __init__(
        self,
        db: AsyncSession,
        llm: CompletionClient,
        max_flashcards_per_deck: int = DEFAULT_MAX_FLASHCARDS_PER_DECK,
        max_text_length: int = MAX_SOURCE_TEXT_LENGTH,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> None:
        self.db = db
        self.llm = llm
        self.max_flashcards_per_deck = max_flashcards_per_deck
        self.max_text_length = max_text_length
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def suggest(self, deck_id: str, text: str, user_id: str) -> SuggestionResult:
        """Generate flashcard suggestions for a deck from source text.

        Args:
            deck_id: Deck the suggestions are for.
            text: Source text, 1 to ``max_text_length`` characters.
            user_id: Authenticated user.

        Returns:
            The new generation id and the suggested flashcards.

        Raises:
            ValueError: If ``text`` is empty or too long.
            DeckNotFoundError: If the deck is missing or owned by someone else.
            GenerationError: If the model call, its validation, or recording
                the generation fails.
        """
        if not text.strip() or len(text) > self.max_text_length:
            raise ValueError(f"Text must be between 1 and {self.max_text_length} characters")

        await get_owned_deck(self.db, deck_id, user_id)

        start = time.perf_counter()
        try:
            suggestions = await self._request_suggestions(text)
        except GenerationError as exc:
            await self._log_failure(deck_id, user_id, exc.message)
            raise
        duration_ms = round((time.perf_counter() - start) * 1000)

        generation = Generation(
            deck_id=deck_id,
            user_id=user_id,
            duration_ms=duration_ms,
            generated_cards_count=len(suggestions),
        )
        self.db.add(generation)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to insert generation record for deck %s", deck_id)
            await self.db.rollback()
            await self._log_failure(deck_id, user_id, f"Failed to insert generation record: {exc}")
            raise GenerationError(
                GenerationFailure.PERSISTENCE, "Failed to log generation event"
            ) from exc

        logger.info(
            "Generation %s: %d suggestions for deck %s in %d ms",
            generation.id,
            len(suggestions),
            deck_id,
            duration_ms,
        )
        return SuggestionResult(generation_id=generation.id, suggested_flashcards=suggestions)

    async def _request_suggestions(self, text: str) -> list[SuggestedFlashcard]:
        request = CompletionRequest(
            system_message=SUGGESTION_SYSTEM_PROMPT,
            user_message=SUGGESTION_USER_PROMPT.format(text=text),
            response_schema=FlashcardSuggestions,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            result = await self.llm.complete(request)
        except CompletionError as exc:
            failure, message = COMPLETION_FAILURES[exc.kind]
            logger.error("Suggestion request failed (%s): %s", exc.kind.value, exc.message)
            raise GenerationError(failure, message) from exc
        except Exception as exc:
            logger.exception("Unexpected error during flashcard generation")
            raise GenerationError(
                GenerationFailure.UNEXPECTED,
                "An unexpected error occurred during generation. Please try again.",
            ) from exc

        if not isinstance(result, FlashcardSuggestions):
            logger.error("Suggestion request returned %s instead of FlashcardSuggestions", type(result))
            raise GenerationError(
                GenerationFailure.VALIDATION,
                "AI returned an unexpected response format. Please try again.",
            )

        suggestions = [
            _clip_suggestion(card.front.strip(), card.back.strip())
            for card in result.flashcards
            if card.front.strip() and card.back.strip()
        ]
        if not suggestions:
            raise GenerationError(
                GenerationFailure.EMPTY,
                "AI did not generate any flashcards. Please try again with different text.",
            )
        return suggestions

    async def _log_failure(self, deck_id: str, user_id: str, message: str) -> None:
        # Best effort: a failed audit write must not replace the original error.
        try:
            self.db.add(GenerationErrorLog(user_id=user_id, deck_id=deck_id, error_message=message))
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception("Failed to log generation error for deck %s", deck_id)
            await self.db.rollback()

    async def commit(
        self,
        deck_id: str,
        generation_id: str,
        flashcards: Sequence[CardContent],
        user_id: str,
    ) -> CommitResult:
        """Persist curated suggestions for a generation, at most once.

        Cards beyond the deck's free capacity are dropped from the end of the
        list and reported in ``cards_skipped``.

        Raises:
            DeckNotFoundError: If the deck is missing or owned by someone else.
            GenerationNotFoundError: If the generation is not this deck's and
                this user's.
            GenerationAlreadyProcessedError: If the generation was committed.
            ValueError: If a card is empty or too long.
        """
        cleaned = [clean_flashcard_text(card.front, card.back) for card in flashcards]
        db = self.db
        try:
            await get_owned_deck(db, deck_id, user_id, lock=True)
            generation = await self._get_generation(deck_id, generation_id, user_id)
            if generation.is_committed:
                raise GenerationAlreadyProcessedError()

            current = await count_flashcards(db, deck_id)
            available = max(0, self.max_flashcards_per_deck - current)
            to_add = cleaned[:available]
            skipped = len(cleaned) - len(to_add)

            db.add_all(
                [
                    Flashcard(
                        deck_id=deck_id,
                        generation_id=generation_id,
                        creation_type="generated",
                        front=front,
                        back=back,
                    )
                    for front, back in to_add
                ]
            )
            await db.flush()

            # The latch is the last write; if it loses a race, the inserts roll back with it.
            if not await self._claim_generation(generation_id, len(to_add)):
                raise GenerationAlreadyProcessedError()
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if skipped:
            logger.warning(
                "Deck %s is at capacity: skipped %d of %d cards from generation %s",
                deck_id,
                skipped,
                len(cleaned),
                generation_id,
            )
        logger.info("Committed %d cards from generation %s to deck %s", len(to_add), generation_id, deck_id)
        return CommitResult(
            cards_added=len(to_add),
            cards_skipped=skipped,
            deck_total_flashcards=current + len(to_add),
        )

    async def _get_generation(self, deck_id: str, generation_id: str, user_id: str) -> Generation:
        stmt = select(Generation).where(
            Generation.id == generation_id,
            Generation.deck_id == deck_id,
            Generation.user_id == user_id,
        )
        generation = (await self.db.execute(stmt)).scalar_one_or_none()
        if generation is None:
            raise GenerationNotFoundError()
        return generation

    async def _claim_generation(self, generation_id: str, accepted: int) -> bool:
        """Set accepted_cards_count only if it is still NULL. Returns True on success."""
        stmt = (
            update(Generation)
            .where(Generation.id == generation_id, Generation.accepted_cards_count.is_(None))
            .values(accepted_cards_count=accepted)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1
