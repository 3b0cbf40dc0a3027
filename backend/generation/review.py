"""Review wizard state machine for generated suggestions.

input -> loading -> review -> saving, with an error step reachable from
loading. Each step is its own frozen dataclass and carries only the fields
that make sense in it, so e.g. an editing index cannot exist outside review.

Reducers take a state and return the next one. A transition that is not
legal from the current step returns the state unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from backend.generation.schemas import SuggestedFlashcard
from backend.generation.service import MAX_SOURCE_TEXT_LENGTH


@dataclass(frozen=True)
class InputStep:
    text: str = ""


@dataclass(frozen=True)
class LoadingStep:
    text: str


@dataclass(frozen=True)
class ReviewStep:
    text: str
    generation_id: str
    flashcards: tuple[SuggestedFlashcard, ...]
    editing_index: int | None = None
    save_error: str | None = None  # Inline error from a failed save


@dataclass(frozen=True)
class SavingStep:
    text: str
    generation_id: str
    flashcards: tuple[SuggestedFlashcard, ...]


@dataclass(frozen=True)
class ErrorStep:
    text: str
    message: str


ReviewState = InputStep | LoadingStep | ReviewStep | SavingStep | ErrorStep


def initial_state() -> ReviewState:
    return InputStep()


def can_submit(state: ReviewState) -> bool:
    """False while a suggest or commit call is in flight."""
    return not isinstance(state, LoadingStep | SavingStep)


def set_input(state: ReviewState, text: str) -> ReviewState:
    if isinstance(state, InputStep | ErrorStep):
        return InputStep(text=text)
    return state


def start_generation(state: ReviewState, max_length: int = MAX_SOURCE_TEXT_LENGTH) -> ReviewState:
    if not isinstance(state, InputStep | ErrorStep):
        return state
    if not state.text.strip() or len(state.text) > max_length:
        return state
    return LoadingStep(text=state.text)


def generation_succeeded(
    state: ReviewState,
    generation_id: str,
    flashcards: Sequence[SuggestedFlashcard],
) -> ReviewState:
    if not isinstance(state, LoadingStep):
        return state
    return ReviewStep(text=state.text, generation_id=generation_id, flashcards=tuple(flashcards))


def generation_failed(state: ReviewState, message: str) -> ReviewState:
    # The typed text survives so the user can retry without retyping.
    if not isinstance(state, LoadingStep):
        return state
    return ErrorStep(text=state.text, message=message)


def start_editing(state: ReviewState, index: int) -> ReviewState:
    if not isinstance(state, ReviewStep) or not 0 <= index < len(state.flashcards):
        return state
    return replace(state, editing_index=index)


def cancel_editing(state: ReviewState) -> ReviewState:
    if not isinstance(state, ReviewStep):
        return state
    return replace(state, editing_index=None)


def update_flashcard(state: ReviewState, index: int, front: str, back: str) -> ReviewState:
    if not isinstance(state, ReviewStep) or not 0 <= index < len(state.flashcards):
        return state
    if not front.strip() or not back.strip():
        return state
    flashcards = list(state.flashcards)
    flashcards[index] = SuggestedFlashcard(front=front.strip(), back=back.strip())
    return replace(state, flashcards=tuple(flashcards), editing_index=None)


def delete_flashcard(state: ReviewState, index: int) -> ReviewState:
    if not isinstance(state, ReviewStep) or not 0 <= index < len(state.flashcards):
        return state
    flashcards = state.flashcards[:index] + state.flashcards[index + 1 :]
    editing_index = state.editing_index
    if editing_index == index:
        editing_index = None
    elif editing_index is not None and editing_index > index:
        editing_index -= 1
    return replace(state, flashcards=flashcards, editing_index=editing_index)


def start_saving(state: ReviewState) -> ReviewState:
    if not isinstance(state, ReviewStep) or not state.flashcards:
        return state
    return SavingStep(text=state.text, generation_id=state.generation_id, flashcards=state.flashcards)


def save_failed(state: ReviewState, message: str) -> ReviewState:
    if not isinstance(state, SavingStep):
        return state
    return ReviewStep(
        text=state.text,
        generation_id=state.generation_id,
        flashcards=state.flashcards,
        save_error=message,
    )


def save_succeeded(state: ReviewState) -> ReviewState:
    if not isinstance(state, SavingStep):
        return state
    return InputStep()


def reset(state: ReviewState) -> ReviewState:
    return InputStep()
