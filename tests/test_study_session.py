"""Tests for the study session engine: shuffling, navigation, and resets."""

import random
from collections import Counter
from dataclasses import dataclass

from backend.study import StudySession, fisher_yates_shuffle
from backend.study.session import flip, initialize, next_card, previous_card


@dataclass(frozen=True)
class Card:
    id: str
    front: str = ""
    back: str = ""


def _make_cards(n: int) -> list[Card]:
    return [Card(id=f"c{i}", front=f"Q{i}", back=f"A{i}") for i in range(n)]


# --- Shuffle ---


class TestFisherYates:
    def test_is_permutation(self) -> None:
        cards = _make_cards(10)
        shuffled = fisher_yates_shuffle(cards, random.Random(1))
        assert sorted(c.id for c in shuffled) == sorted(c.id for c in cards)

    def test_does_not_mutate_input(self) -> None:
        cards = _make_cards(5)
        original = list(cards)
        fisher_yates_shuffle(cards, random.Random(2))
        assert cards == original

    def test_empty_and_single(self) -> None:
        assert fisher_yates_shuffle([]) == []
        assert fisher_yates_shuffle(["only"]) == ["only"]

    def test_roughly_uniform(self) -> None:
        rng = random.Random(42)
        counts = Counter(tuple(fisher_yates_shuffle([1, 2, 3], rng)) for _ in range(6000))
        assert len(counts) == 6
        # Each of the 6 orderings should land near 1000.
        assert all(800 < n < 1200 for n in counts.values())


# --- Navigation ---


class TestStudySession:
    def test_initialize(self) -> None:
        session = StudySession.initialize(_make_cards(3), random.Random(0))
        assert session.current_index == 0
        assert session.total_cards == 3
        assert not session.is_flipped
        assert not session.is_complete
        assert session.current_card is not None

    def test_empty_deck(self) -> None:
        session = StudySession.initialize([])
        assert session.total_cards == 0
        assert session.current_card is None
        assert session.progress == (0, 0)

    def test_flip_toggles(self) -> None:
        session = StudySession.initialize(_make_cards(2))
        session.flip()
        assert session.is_flipped
        session.flip()
        assert not session.is_flipped

    def test_next_unflips(self) -> None:
        session = StudySession.initialize(_make_cards(3))
        session.flip()
        session.next()
        assert session.current_index == 1
        assert not session.is_flipped

    def test_next_past_last_completes(self) -> None:
        session = StudySession.initialize(_make_cards(2))
        session.next()
        session.flip()
        session.next()
        assert session.is_complete
        assert not session.is_flipped
        assert session.current_index == 1
        assert session.current_card is None
        assert session.progress == (2, 2)

    def test_next_on_complete_is_noop(self) -> None:
        session = StudySession.initialize(_make_cards(1))
        session.next()
        before = session.snapshot()
        session.next()
        assert session.snapshot() is before

    def test_previous_at_start_is_noop(self) -> None:
        session = StudySession.initialize(_make_cards(3))
        before = session.snapshot()
        session.previous()
        assert session.snapshot() is before

    def test_previous_moves_back(self) -> None:
        session = StudySession.initialize(_make_cards(3))
        session.next()
        session.next()
        session.flip()
        session.previous()
        assert session.current_index == 1
        assert not session.is_flipped

    def test_previous_on_complete_is_noop(self) -> None:
        session = StudySession.initialize(_make_cards(2))
        session.next()
        session.next()
        session.previous()
        assert session.is_complete

    def test_restart_reshuffles_and_resets(self) -> None:
        cards = _make_cards(5)
        session = StudySession.initialize(cards, random.Random(3))
        for _ in range(5):
            session.next()
        assert session.is_complete

        session.restart()
        assert not session.is_complete
        assert session.current_index == 0
        assert not session.is_flipped
        assert sorted(c.id for c in session.snapshot().shuffled_order) == sorted(c.id for c in cards)

    def test_progress_is_one_based(self) -> None:
        session = StudySession.initialize(_make_cards(4))
        assert session.progress == (1, 4)
        session.next()
        assert session.progress == (2, 4)

    def test_walk_visits_every_card_once(self) -> None:
        cards = _make_cards(6)
        session = StudySession.initialize(cards, random.Random(9))
        seen = []
        while not session.is_complete:
            seen.append(session.current_card.id)
            session.next()
        assert sorted(seen) == sorted(c.id for c in cards)


class TestSync:
    def test_same_cards_keep_position(self) -> None:
        cards = _make_cards(3)
        session = StudySession.initialize(cards)
        session.next()
        assert session.sync(list(cards)) is False
        assert session.current_index == 1

    def test_shrunk_list_resets(self) -> None:
        cards = _make_cards(5)
        session = StudySession.initialize(cards)
        for _ in range(4):
            session.next()
        assert session.sync(cards[:2]) is True
        assert session.current_index == 0
        assert session.total_cards == 2
        assert session.current_card is not None

    def test_reordered_list_resets(self) -> None:
        cards = _make_cards(3)
        session = StudySession.initialize(cards)
        session.flip()
        assert session.sync(list(reversed(cards))) is True
        assert not session.is_flipped


class TestReducers:
    def test_reducers_do_not_mutate(self) -> None:
        state = initialize(_make_cards(3))
        flipped = flip(state)
        assert not state.is_flipped
        assert flipped.is_flipped
        moved = next_card(state)
        assert state.current_index == 0
        assert moved.current_index == 1
        assert previous_card(moved).current_index == 0

    def test_empty_next_completes(self) -> None:
        state = next_card(initialize([]))
        assert state.is_complete
        assert state.current_card is None
