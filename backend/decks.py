"""Owner-scoped deck and flashcard lookups.

Every read is filtered by ``user_id`` so that another user's deck looks
exactly like a missing one.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import DeckCapacityError, DeckNotFoundError
from backend.models.deck import Deck
from backend.models.flashcard import BACK_MAX_LENGTH, FRONT_MAX_LENGTH, Flashcard

logger = logging.getLogger(__name__)

DEFAULT_MAX_FLASHCARDS_PER_DECK = 100


def clean_flashcard_text(front: str, back: str) -> tuple[str, str]:
    """Trim both sides and check them against the column limits.

    Raises:
        ValueError: If a side is empty after trimming or too long.
    """
    front, back = front.strip(), back.strip()
    if not front or len(front) > FRONT_MAX_LENGTH:
        raise ValueError(f"Front of flashcard must be between 1 and {FRONT_MAX_LENGTH} characters")
    if not back or len(back) > BACK_MAX_LENGTH:
        raise ValueError(f"Back of flashcard must be between 1 and {BACK_MAX_LENGTH} characters")
    return front, back


async def get_owned_deck(
    db: AsyncSession,
    deck_id: str,
    user_id: str,
    lock: bool = False,
) -> Deck:
    """Return the deck if it exists and belongs to ``user_id``.

    With ``lock=True`` the deck row is selected FOR UPDATE, which serializes
    capacity checks for the same deck on databases that support row locks.

    Raises:
        DeckNotFoundError: If the deck is missing or owned by someone else.
    """
    stmt = select(Deck).where(Deck.id == deck_id, Deck.user_id == user_id)
    if lock:
        stmt = stmt.with_for_update()
    deck = (await db.execute(stmt)).scalar_one_or_none()
    if deck is None:
        raise DeckNotFoundError("Deck not found")
    return deck


async def count_flashcards(db: AsyncSession, deck_id: str) -> int:
    stmt = select(func.count(Flashcard.id)).where(Flashcard.deck_id == deck_id)
    return (await db.execute(stmt)).scalar() or 0


async def list_flashcards(db: AsyncSession, deck_id: str) -> list[Flashcard]:
    stmt = (
        select(Flashcard)
        .where(Flashcard.deck_id == deck_id)
        .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def list_decks(db: AsyncSession, user_id: str) -> list[tuple[Deck, int]]:
    """Return the user's decks with their flashcard counts, newest first."""
    stmt = (
        select(Deck, func.count(Flashcard.id))
        .outerjoin(Flashcard, Flashcard.deck_id == Deck.id)
        .where(Deck.user_id == user_id)
        .group_by(Deck.id)
        .order_by(Deck.updated_at.desc())
    )
    return [(deck, count) for deck, count in (await db.execute(stmt)).all()]


async def create_deck(db: AsyncSession, user_id: str, name: str) -> Deck:
    name = name.strip()
    if not name or len(name) > 100:
        raise ValueError("Deck name must be between 1 and 100 characters")
    deck = Deck(user_id=user_id, name=name)
    db.add(deck)
    await db.commit()
    await db.refresh(deck)
    logger.info("Created deck %s for user %s", deck.id, user_id)
    return deck


async def add_flashcard(
    db: AsyncSession,
    deck_id: str,
    user_id: str,
    front: str,
    back: str,
    max_flashcards: int = DEFAULT_MAX_FLASHCARDS_PER_DECK,
) -> Flashcard:
    """Manually add one flashcard, enforcing the per-deck ceiling.

    Raises:
        DeckNotFoundError: If the deck is missing or not owned by the user.
        DeckCapacityError: If the deck is already full.
        ValueError: If front or back is empty or too long.
    """
    front, back = clean_flashcard_text(front, back)
    await get_owned_deck(db, deck_id, user_id, lock=True)
    current = await count_flashcards(db, deck_id)
    if current >= max_flashcards:
        await db.rollback()
        raise DeckCapacityError(max_flashcards)

    flashcard = Flashcard(
        deck_id=deck_id,
        creation_type="manual",
        front=front,
        back=back,
    )
    db.add(flashcard)
    await db.commit()
    await db.refresh(flashcard)
    return flashcard
