import os

# Must be set before backend.database builds the engine.
os.environ.setdefault("FLASHDECK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.database import get_session  # noqa: E402
from backend.generation.schemas import FlashcardSuggestions, SuggestedFlashcard  # noqa: E402
from backend.llm_client import CompletionRequest, get_llm_client  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models import Base, Deck, Flashcard  # noqa: E402


class FakeLLM:
    """Stands in for LLMClient: returns ``result`` or raises ``error``."""

    def __init__(self) -> None:
        self.result: object = FlashcardSuggestions(
            flashcards=[
                SuggestedFlashcard(front="What is mitosis?", back="Cell division into two identical cells"),
                SuggestedFlashcard(front="What is meiosis?", back="Cell division producing gametes"),
                SuggestedFlashcard(front="What is a gamete?", back="A haploid reproductive cell"),
            ]
        )
        self.error: Exception | None = None
        self.requests: list[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> object:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest_asyncio.fixture
async def client(session_factory, fake_llm):
    async def _get_test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_test_session
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_deck(db: AsyncSession, user_id: str = "user-1", name: str = "Biology", cards: int = 0) -> Deck:
    deck = Deck(user_id=user_id, name=name)
    db.add(deck)
    await db.flush()
    db.add_all(
        [
            Flashcard(deck_id=deck.id, creation_type="manual", front=f"Q{i}", back=f"A{i}")
            for i in range(cards)
        ]
    )
    await db.commit()
    return deck


@pytest.fixture
def make_deck(session_factory):
    """Create a deck with `cards` manual flashcards and return it."""

    async def _factory(user_id: str = "user-1", name: str = "Biology", cards: int = 0) -> Deck:
        async with session_factory() as session:
            return await _make_deck(session, user_id=user_id, name=name, cards=cards)

    return _factory
