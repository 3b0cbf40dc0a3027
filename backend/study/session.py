"""Study session engine.

Shuffles a deck's cards once and walks through them: flip, next, previous,
restart. Every operation is synchronous and total; boundary clamps take the
place of errors, so an empty deck or a press past the last card never raises.

The state is an immutable value. The reducer functions return a new state
(or the same object when nothing changes); ``StudySession`` is a thin
stateful handle around them for callers that prefer methods.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any, Generic, Protocol, TypeVar


class HasId(Protocol):
    id: Any


T = TypeVar("T")
CardT = TypeVar("CardT", bound=HasId)


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``items``.

    The input is never modified. Pass ``rng`` for reproducible orders.
    """
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def card_ids(cards: Sequence[HasId]) -> tuple:
    return tuple(card.id for card in cards)


@dataclass(frozen=True)
class StudySessionState(Generic[CardT]):
    """Snapshot of a study session.

    While not complete, ``0 <= current_index < total_cards``. Once complete,
    ``current_index`` stays on the last card and only ``restart`` clears
    ``is_complete``.
    """

    shuffled_order: tuple[CardT, ...]
    source_ids: tuple
    current_index: int = 0
    is_flipped: bool = False
    is_complete: bool = False

    @property
    def total_cards(self) -> int:
        return len(self.shuffled_order)

    @property
    def current_card(self) -> CardT | None:
        if self.is_complete or not self.shuffled_order:
            return None
        return self.shuffled_order[self.current_index]

    @property
    def is_empty(self) -> bool:
        return not self.shuffled_order

    @property
    def progress(self) -> tuple[int, int]:
        """Return (position, total) for progress display, 1-based."""
        if self.is_empty:
            return 0, 0
        if self.is_complete:
            return self.total_cards, self.total_cards
        return self.current_index + 1, self.total_cards


def initialize(cards: Sequence[CardT], rng: random.Random | None = None) -> StudySessionState[CardT]:
    return StudySessionState(
        shuffled_order=tuple(fisher_yates_shuffle(cards, rng)),
        source_ids=card_ids(cards),
    )


def flip(state: StudySessionState[CardT]) -> StudySessionState[CardT]:
    return replace(state, is_flipped=not state.is_flipped)


def next_card(state: StudySessionState[CardT]) -> StudySessionState[CardT]:
    # Moving past the last card completes the session instead of overflowing.
    if state.is_complete:
        return state
    if state.current_index + 1 < state.total_cards:
        return replace(state, current_index=state.current_index + 1, is_flipped=False)
    return replace(state, is_complete=True, is_flipped=False)


def previous_card(state: StudySessionState[CardT]) -> StudySessionState[CardT]:
    if state.is_complete or state.current_index == 0:
        return state
    return replace(state, current_index=state.current_index - 1, is_flipped=False)


def restart(state: StudySessionState[CardT], rng: random.Random | None = None) -> StudySessionState[CardT]:
    """Reshuffle the working order and go back to the first card."""
    return replace(
        state,
        shuffled_order=tuple(fisher_yates_shuffle(state.shuffled_order, rng)),
        current_index=0,
        is_flipped=False,
        is_complete=False,
    )


def sync(
    state: StudySessionState[CardT],
    cards: Sequence[CardT],
    rng: random.Random | None = None,
) -> StudySessionState[CardT]:
    """Rebuild the session if the source cards changed.

    Cards are compared by their ordered id sequence. Any difference means a
    full reset, since a cursor into a shrunk list could point past its end.
    """
    if card_ids(cards) == state.source_ids:
        return state
    return initialize(cards, rng)


class StudySession(Generic[CardT]):
    """Stateful handle over the study session reducers."""

    def __init__(self, cards: Sequence[CardT], rng: random.Random | None = None) -> None:
        self._rng = rng
        self.state: StudySessionState[CardT] = initialize(cards, rng)

    @classmethod
    def initialize(cls, cards: Sequence[CardT], rng: random.Random | None = None) -> StudySession[CardT]:
        return cls(cards, rng)

    @property
    def current_card(self) -> CardT | None:
        return self.state.current_card

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def total_cards(self) -> int:
        return self.state.total_cards

    @property
    def is_flipped(self) -> bool:
        return self.state.is_flipped

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete

    @property
    def progress(self) -> tuple[int, int]:
        return self.state.progress

    def flip(self) -> StudySessionState[CardT]:
        self.state = flip(self.state)
        return self.state

    def next(self) -> StudySessionState[CardT]:
        self.state = next_card(self.state)
        return self.state

    def previous(self) -> StudySessionState[CardT]:
        self.state = previous_card(self.state)
        return self.state

    def restart(self) -> StudySessionState[CardT]:
        self.state = restart(self.state, self._rng)
        return self.state

    def sync(self, cards: Sequence[CardT]) -> bool:
        """Reset if ``cards`` differs from the source list. Returns True on reset."""
        new_state = sync(self.state, cards, self._rng)
        changed = new_state is not self.state
        self.state = new_state
        return changed

    def snapshot(self) -> StudySessionState[CardT]:
        return self.state
