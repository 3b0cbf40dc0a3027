"""CLI interface for Flashdeck.

Usage:
    python -m flashdeck decks                         List your decks
    python -m flashdeck create-deck "Biology"         Create a deck
    python -m flashdeck add DECK_ID "front" "back"    Add a flashcard by hand
    python -m flashdeck study DECK_ID                 Study a deck in random order
    python -m flashdeck generate DECK_ID notes.txt    Generate flashcards from text
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from backend.config import settings
from backend.database import async_session, engine
from backend.decks import add_flashcard, create_deck, get_owned_deck, list_decks, list_flashcards
from backend.errors import (
    DeckCapacityError,
    DeckNotFoundError,
    GenerationAlreadyProcessedError,
    GenerationError,
    GenerationNotFoundError,
)
from backend.generation import review
from backend.generation.service import GenerationService
from backend.llm_client import LLMClient
from backend.models import Base
from backend.study import StudySession

LOCAL_USER_ID = "local"


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def current_user(args: argparse.Namespace) -> str:
    return args.user or settings.default_user_id or LOCAL_USER_ID


async def cmd_decks(args: argparse.Namespace) -> None:
    """List the user's decks."""
    await ensure_db()
    async with async_session() as db:
        decks = await list_decks(db, current_user(args))

    if not decks:
        print("\n  No decks yet. Create one with: python -m flashdeck create-deck NAME\n")
        return

    print()
    for deck, count in decks:
        print(f"  {deck.id}  {deck.name:<30} {count:>3} cards")
    print()


async def cmd_create_deck(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        try:
            deck = await create_deck(db, current_user(args), args.name)
        except ValueError as exc:
            print(f"  {exc}")
            return
    print(f"  Created deck '{deck.name}' ({deck.id})")


async def cmd_add(args: argparse.Namespace) -> None:
    """Add a flashcard manually."""
    await ensure_db()
    async with async_session() as db:
        try:
            await add_flashcard(
                db,
                args.deck_id,
                current_user(args),
                args.front,
                args.back,
                max_flashcards=settings.max_flashcards_per_deck,
            )
        except (DeckNotFoundError, DeckCapacityError) as exc:
            print(f"  {exc.message}")
            return
        except ValueError as exc:
            print(f"  {exc}")
            return
    print("  Added.")


async def cmd_study(args: argparse.Namespace) -> None:
    """Run an interactive study session."""
    await ensure_db()
    async with async_session() as db:
        try:
            await get_owned_deck(db, args.deck_id, current_user(args))
        except DeckNotFoundError as exc:
            print(f"  {exc.message}")
            return
        flashcards = await list_flashcards(db, args.deck_id)

    session = StudySession.initialize(flashcards)
    if session.total_cards == 0:
        print("\n  This deck has no flashcards yet.\n")
        return

    print("\n  Study Session")
    print("  Keys: enter/f=flip  n=next  p=previous  r=restart  q=quit\n")

    while True:
        if session.is_complete:
            print(f"\n  Session complete! You studied {session.total_cards} cards.")
            choice = input("  r=restart, any other key to quit: ").strip().lower()
            if choice == "r":
                session.restart()
                continue
            break

        card = session.current_card
        position, total = session.progress
        side = card.back if session.is_flipped else card.front
        label = "Back" if session.is_flipped else "Front"
        print(f"  [{position}/{total}] {label}: {side}")

        choice = input("  > ").strip().lower()
        if choice in ("", "f"):
            session.flip()
        elif choice == "n":
            session.next()
        elif choice == "p":
            session.previous()
        elif choice == "r":
            session.restart()
        elif choice == "q":
            print("\n  Session ended early.")
            break
    print()


def _print_suggestions(state: review.ReviewStep) -> None:
    print()
    for i, card in enumerate(state.flashcards, 1):
        print(f"  {i}. {card.front}")
        print(f"     {card.back}")
    if state.save_error:
        print(f"\n  Save failed: {state.save_error}")
    print("\n  Commands: e N=edit  d N=delete  s=save  q=discard")


def _parse_index(command: str, state: review.ReviewStep) -> int | None:
    parts = command.split()
    if len(parts) != 2 or not parts[1].isdigit():
        return None
    index = int(parts[1]) - 1
    return index if 0 <= index < len(state.flashcards) else None


async def cmd_generate(args: argparse.Namespace) -> None:
    """Generate suggestions from a text file, review them, and save the keepers."""
    await ensure_db()
    user_id = current_user(args)
    text = sys.stdin.read() if args.source == "-" else Path(args.source).read_text(encoding="utf-8")

    state = review.set_input(review.initial_state(), text)
    state = review.start_generation(state, settings.max_source_text_length)
    if not isinstance(state, review.LoadingStep):
        print(f"  Text must be between 1 and {settings.max_source_text_length} characters.")
        return

    llm = LLMClient.from_settings(settings)
    async with async_session() as db:
        service = GenerationService(
            db,
            llm,
            max_flashcards_per_deck=settings.max_flashcards_per_deck,
            max_text_length=settings.max_source_text_length,
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens,
        )

        print("  Generating flashcards...")
        try:
            result = await service.suggest(args.deck_id, text, user_id)
        except DeckNotFoundError as exc:
            print(f"  {exc.message}")
            return
        except GenerationError as exc:
            state = review.generation_failed(state, exc.message)
            hint = " (try again shortly)" if exc.retryable else ""
            print(f"  {state.message}{hint}")
            return
        state = review.generation_succeeded(state, result.generation_id, result.suggested_flashcards)

        while isinstance(state, review.ReviewStep):
            _print_suggestions(state)
            command = input("  > ").strip().lower()

            if command == "q":
                print("  Discarded.")
                return
            if command.startswith("d"):
                index = _parse_index(command, state)
                if index is not None:
                    state = review.delete_flashcard(state, index)
                    if not state.flashcards:
                        print("  No suggestions left.")
                        return
            elif command.startswith("e"):
                index = _parse_index(command, state)
                if index is None:
                    continue
                state = review.start_editing(state, index)
                card = state.flashcards[index]
                front = input(f"  Front [{card.front}]: ").strip() or card.front
                back = input(f"  Back [{card.back}]: ").strip() or card.back
                state = review.update_flashcard(state, index, front, back)
                state = review.cancel_editing(state)
            elif command == "s":
                state = review.start_saving(state)
                try:
                    commit = await service.commit(args.deck_id, state.generation_id, state.flashcards, user_id)
                except (DeckNotFoundError, GenerationNotFoundError, GenerationAlreadyProcessedError) as exc:
                    state = review.save_failed(state, exc.message)
                    continue
                except ValueError as exc:
                    state = review.save_failed(state, str(exc))
                    continue
                state = review.save_succeeded(state)
                print(f"\n  Added {commit.cards_added} cards ({commit.cards_skipped} skipped).")
                print(f"  Deck now has {commit.deck_total_flashcards} flashcards.\n")


def main() -> None:
    """Entry point for the Flashdeck CLI application."""
    parser = argparse.ArgumentParser(
        prog="flashdeck",
        description="Flashcard decks with AI-generated suggestions",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-u", "--user", default=None, help="User id (default: local)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # decks
    subparsers.add_parser("decks", help="List your decks")

    # create-deck
    create_parser = subparsers.add_parser("create-deck", help="Create a new deck")
    create_parser.add_argument("name", help="Deck name")

    # add
    add_parser = subparsers.add_parser("add", help="Add a flashcard by hand")
    add_parser.add_argument("deck_id", help="Deck id")
    add_parser.add_argument("front", help="Question side")
    add_parser.add_argument("back", help="Answer side")

    # study
    study_parser = subparsers.add_parser("study", help="Study a deck in random order")
    study_parser.add_argument("deck_id", help="Deck id")

    # generate
    generate_parser = subparsers.add_parser("generate", help="Generate flashcards from text")
    generate_parser.add_argument("deck_id", help="Deck id")
    generate_parser.add_argument("source", help="Text file to generate from, or - for stdin")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "decks": cmd_decks,
        "create-deck": cmd_create_deck,
        "add": cmd_add,
        "study": cmd_study,
        "generate": cmd_generate,
    }

    asyncio.run(cmd_map[args.command](args))


if __name__ == "__main__":
    main()
