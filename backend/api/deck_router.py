"""API routes for a deck's flashcards."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.dependencies import get_generation_service
from backend.api.schemas import (
    BulkCreateFlashcardsRequest,
    BulkCreateFlashcardsResponse,
    CreateFlashcardRequest,
    FlashcardResponse,
)
from backend.auth import get_current_user_id
from backend.config import settings
from backend.database import get_session
from backend.decks import add_flashcard, get_owned_deck, list_flashcards
from backend.errors import (
    DeckCapacityError,
    DeckNotFoundError,
    GenerationAlreadyProcessedError,
    GenerationNotFoundError,
)
from backend.generation.service import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/decks", tags=["flashcards"])


@router.get("/{deck_id}/flashcards", response_model=list[FlashcardResponse])
async def get_deck_flashcards(
    deck_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> list[FlashcardResponse]:
    """List every flashcard in a deck, oldest first."""
    try:
        await get_owned_deck(db, str(deck_id), user_id)
    except DeckNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc

    flashcards = await list_flashcards(db, str(deck_id))
    return [FlashcardResponse.model_validate(card) for card in flashcards]


@router.post("/{deck_id}/flashcards", response_model=FlashcardResponse, status_code=201)
async def create_flashcard(
    deck_id: UUID,
    request: CreateFlashcardRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> FlashcardResponse:
    """Manually add a flashcard to a deck."""
    try:
        flashcard = await add_flashcard(
            db,
            str(deck_id),
            user_id,
            request.front,
            request.back,
            max_flashcards=settings.max_flashcards_per_deck,
        )
    except DeckNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except DeckCapacityError as exc:
        raise HTTPException(status_code=403, detail=exc.message) from exc

    return FlashcardResponse.model_validate(flashcard)


@router.post(
    "/{deck_id}/flashcards/bulk",
    response_model=BulkCreateFlashcardsResponse,
    status_code=201,
)
async def bulk_create_flashcards(
    deck_id: UUID,
    request: BulkCreateFlashcardsRequest,
    user_id: str = Depends(get_current_user_id),
    service: GenerationService = Depends(get_generation_service),
) -> BulkCreateFlashcardsResponse:
    """Commit curated suggestions from a generation. Each generation commits once."""
    try:
        result = await service.commit(
            str(deck_id),
            str(request.generation_id),
            request.flashcards,
            user_id,
        )
    except (DeckNotFoundError, GenerationNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except GenerationAlreadyProcessedError as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc

    return BulkCreateFlashcardsResponse(
        cards_added=result.cards_added,
        cards_skipped=result.cards_skipped,
        deck_total_flashcards=result.deck_total_flashcards,
    )
