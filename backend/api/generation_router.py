"""API routes for AI flashcard generation."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.api.dependencies import get_generation_service
from backend.api.schemas import (
    FlashcardContent,
    GenerateFlashcardsRequest,
    SuggestedFlashcardsResponse,
)
from backend.auth import get_current_user_id
from backend.errors import DeckNotFoundError, GenerationError
from backend.generation.service import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generations", tags=["generations"])


@router.post("", response_model=SuggestedFlashcardsResponse)
async def create_generation(
    request: GenerateFlashcardsRequest,
    user_id: str = Depends(get_current_user_id),
    service: GenerationService = Depends(get_generation_service),
) -> SuggestedFlashcardsResponse:
    """Generate flashcard suggestions. Nothing is added to the deck yet."""
    try:
        result = await service.suggest(str(request.deck_id), request.text, user_id)
    except DeckNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except GenerationError as exc:
        logger.error("Generation failed for deck %s: %s", request.deck_id, exc.reason.value)
        raise HTTPException(status_code=500, detail=exc.to_dict()) from exc

    return SuggestedFlashcardsResponse(
        generation_id=result.generation_id,
        suggested_flashcards=[
            FlashcardContent(front=card.front, back=card.back) for card in result.suggested_flashcards
        ],
    )
