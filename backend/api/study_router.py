"""API routes for study sessions."""

import logging
import uuid
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import FlashcardResponse, StudySessionResponse
from backend.auth import get_current_user_id
from backend.database import get_session
from backend.decks import get_owned_deck, list_flashcards
from backend.errors import DeckNotFoundError
from backend.models.flashcard import Flashcard
from backend.study import StudySession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/study", tags=["study"])

STUDY_ACTIONS = ("flip", "next", "previous", "restart")


@dataclass
class ActiveStudySession:
    user_id: str
    deck_id: str
    session: StudySession[Flashcard]


# In-memory session store (for MVP; move to Redis for production)
_active_sessions: dict[str, ActiveStudySession] = {}


def _to_response(session_id: str, active: ActiveStudySession) -> StudySessionResponse:
    session = active.session
    card = session.current_card
    position, total = session.progress
    return StudySessionResponse(
        session_id=session_id,
        deck_id=active.deck_id,
        current_index=session.current_index,
        position=position,
        total_cards=total,
        is_flipped=session.is_flipped,
        is_complete=session.is_complete,
        current_card=FlashcardResponse.model_validate(card) if card is not None else None,
    )


def _get_active(session_id: str, user_id: str) -> ActiveStudySession:
    active = _active_sessions.get(session_id)
    if active is None or active.user_id != user_id:
        raise HTTPException(status_code=404, detail="Session not found")
    return active


async def _sync_with_deck(db: AsyncSession, session_id: str, active: ActiveStudySession) -> bool:
    """Reshuffle the session if the deck's cards changed. Returns True on reset."""
    flashcards = await list_flashcards(db, active.deck_id)
    if not active.session.sync(flashcards):
        return False
    logger.info("Study session %s reset after deck %s changed", session_id, active.deck_id)
    return True


@router.post("/start/{deck_id}", response_model=StudySessionResponse)
async def study_start(
    deck_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> StudySessionResponse:
    """Shuffle a deck's flashcards into a new study session."""
    try:
        deck = await get_owned_deck(db, str(deck_id), user_id)
    except DeckNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc

    flashcards = await list_flashcards(db, deck.id)
    session_id = str(uuid.uuid4())
    active = ActiveStudySession(user_id=user_id, deck_id=deck.id, session=StudySession.initialize(flashcards))
    _active_sessions[session_id] = active

    logger.info("Study session %s started for deck %s with %d cards", session_id, deck.id, len(flashcards))
    return _to_response(session_id, active)


@router.get("/{session_id}", response_model=StudySessionResponse)
async def study_state(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> StudySessionResponse:
    """Return the session state, reshuffling if the deck's cards changed since the last look."""
    active = _get_active(session_id, user_id)
    await _sync_with_deck(db, session_id, active)
    return _to_response(session_id, active)


@router.post("/{session_id}/end")
async def study_end(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, str]:
    """Discard a study session."""
    _get_active(session_id, user_id)
    del _active_sessions[session_id]
    return {"status": "ended", "sessionId": session_id}


@router.post("/{session_id}/{action}", response_model=StudySessionResponse)
async def study_action(
    session_id: str,
    action: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> StudySessionResponse:
    """Apply flip, next, previous or restart to a session.

    If the deck changed since the session was built, the session is reset and
    the action is dropped: it referred to a card order that no longer exists.
    """
    if action not in STUDY_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown study action: {action}")
    active = _get_active(session_id, user_id)
    if not await _sync_with_deck(db, session_id, active):
        getattr(active.session, action)()
    return _to_response(session_id, active)
