"""FastAPI dependencies that wire configuration into the services."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings
from backend.database import get_session
from backend.generation.service import GenerationService
from backend.llm_client import LLMClient, get_llm_client


def get_generation_service(
    db: AsyncSession = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
) -> GenerationService:
    return GenerationService(
        db,
        llm,
        max_flashcards_per_deck=settings.max_flashcards_per_deck,
        max_text_length=settings.max_source_text_length,
        temperature=settings.generation_temperature,
        max_tokens=settings.generation_max_tokens,
    )
