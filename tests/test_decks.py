"""Tests for owner-scoped deck and flashcard storage."""

import pytest

from backend.decks import (
    add_flashcard,
    clean_flashcard_text,
    count_flashcards,
    create_deck,
    get_owned_deck,
    list_decks,
    list_flashcards,
)
from backend.errors import DeckCapacityError, DeckNotFoundError


class TestCleanFlashcardText:
    def test_trims(self) -> None:
        assert clean_flashcard_text("  Q ", "\nA\t") == ("Q", "A")

    def test_limits(self) -> None:
        assert clean_flashcard_text("q" * 200, "a" * 500) == ("q" * 200, "a" * 500)
        with pytest.raises(ValueError):
            clean_flashcard_text("q" * 201, "a")
        with pytest.raises(ValueError):
            clean_flashcard_text("q", "a" * 501)
        with pytest.raises(ValueError):
            clean_flashcard_text("   ", "a")


class TestDeckStore:
    @pytest.mark.asyncio
    async def test_create_and_list(self, db) -> None:
        deck = await create_deck(db, "user-1", "  Spanish verbs  ")
        assert deck.name == "Spanish verbs"
        await create_deck(db, "user-2", "Not mine")

        decks = await list_decks(db, "user-1")
        assert [(d.name, count) for d, count in decks] == [("Spanish verbs", 0)]

    @pytest.mark.asyncio
    async def test_create_rejects_bad_names(self, db) -> None:
        with pytest.raises(ValueError):
            await create_deck(db, "user-1", "  ")
        with pytest.raises(ValueError):
            await create_deck(db, "user-1", "x" * 101)

    @pytest.mark.asyncio
    async def test_ownership(self, db, make_deck) -> None:
        deck = await make_deck(user_id="owner")
        assert (await get_owned_deck(db, deck.id, "owner")).id == deck.id
        with pytest.raises(DeckNotFoundError):
            await get_owned_deck(db, deck.id, "someone-else")
        with pytest.raises(DeckNotFoundError):
            await get_owned_deck(db, "00000000-0000-0000-0000-000000000000", "owner")

    @pytest.mark.asyncio
    async def test_add_flashcard(self, db, make_deck) -> None:
        deck = await make_deck()
        card = await add_flashcard(db, deck.id, "user-1", " Capital of France? ", " Paris ")
        assert (card.front, card.back, card.creation_type) == ("Capital of France?", "Paris", "manual")
        assert card.generation_id is None
        assert [c.id for c in await list_flashcards(db, deck.id)] == [card.id]

    @pytest.mark.asyncio
    async def test_add_flashcard_at_capacity(self, db, make_deck) -> None:
        deck = await make_deck(cards=2)
        with pytest.raises(DeckCapacityError) as exc_info:
            await add_flashcard(db, deck.id, "user-1", "Q", "A", max_flashcards=2)
        assert exc_info.value.limit == 2
        assert await count_flashcards(db, deck.id) == 2

    @pytest.mark.asyncio
    async def test_add_flashcard_to_foreign_deck(self, db, make_deck) -> None:
        deck = await make_deck(user_id="owner")
        with pytest.raises(DeckNotFoundError):
            await add_flashcard(db, deck.id, "intruder", "Q", "A")
