"""
Deck endpoints.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from studyflow.core.database import get_session
from studyflow.schemas.flashcard import (
    CreateDeckRequest,
    DeckResponse,
    DecksResponse,
    DeckStatsResponse,
    DeleteDeckResponse,
    FlashcardResponse,
    FlashcardsResponse,
    UpdateDeckRequest,
)
from studyflow.services import flashcard_service

router = APIRouter(prefix="/decks", tags=["decks"])


@router.get("", response_model=DecksResponse)
async def get_decks(session: Session = Depends(get_session)):
    """Get all decks. Sorted by created_at descending (most recent first)."""
    decks = flashcard_service.list_decks(session)
    return DecksResponse(
        decks=[DeckResponse.model_validate(deck) for deck in decks]
    )


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_deck(deck_id: int, session: Session = Depends(get_session)):
    """Get a deck by ID."""
    deck = flashcard_service.get_deck(session, deck_id)
    return DeckResponse.model_validate(deck)


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def create_deck(
    request: CreateDeckRequest,
    session: Session = Depends(get_session)
):
    """Create a new deck."""
    deck = flashcard_service.create_deck(session, request)
    return DeckResponse.model_validate(deck)


@router.patch("/{deck_id}", response_model=DeckResponse)
async def update_deck(
    deck_id: int,
    request: UpdateDeckRequest,
    session: Session = Depends(get_session)
):
    """Update a deck by ID. Only provided fields are changed."""
    deck = flashcard_service.update_deck(session, deck_id, request)
    return DeckResponse.model_validate(deck)


@router.delete("/{deck_id}", response_model=DeleteDeckResponse)
async def delete_deck(deck_id: int, session: Session = Depends(get_session)):
    """Delete a deck and all of its flashcards."""
    deleted_count = flashcard_service.delete_deck(session, deck_id)
    return DeleteDeckResponse(
        message=f"Deck {deck_id} deleted",
        deleted_flashcards_count=deleted_count
    )


@router.get("/{deck_id}/flashcards", response_model=FlashcardsResponse)
async def get_deck_flashcards(deck_id: int, session: Session = Depends(get_session)):
    """Get all flashcards of a deck in insertion order."""
    flashcards = flashcard_service.list_flashcards(session, deck_id)
    return FlashcardsResponse(
        flashcards=[FlashcardResponse.model_validate(flashcard) for flashcard in flashcards]
    )


@router.get("/{deck_id}/flashcards/due", response_model=FlashcardsResponse)
async def get_due_flashcards(deck_id: int, session: Session = Depends(get_session)):
    """Get the flashcards of a deck that are due for review (never reviewed or past next_review)."""
    flashcards = flashcard_service.get_flashcards_for_review(session, deck_id)
    return FlashcardsResponse(
        flashcards=[FlashcardResponse.model_validate(flashcard) for flashcard in flashcards]
    )


@router.get("/{deck_id}/stats", response_model=DeckStatsResponse)
async def get_deck_stats(deck_id: int, session: Session = Depends(get_session)):
    """Get card, mastered and due counts for a deck."""
    return DeckStatsResponse(**flashcard_service.get_deck_stats(session, deck_id))
