"""
Deck and flashcard service for business logic around decks and their cards.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from studyflow.core.exceptions import NotFoundError, ValidationError
from studyflow.models.models import Deck, Flashcard
from studyflow.schemas.flashcard import (
    CreateDeckRequest,
    CreateFlashcardRequest,
    UpdateDeckRequest,
    UpdateFlashcardRequest,
)
from studyflow.services.scheduler_service import is_due, is_mastered
from studyflow.utils.time_utils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


# ============================================================================
# Decks
# ============================================================================

def list_decks(session: Session) -> List[Deck]:
    """Get all decks, most recently created first."""
    return session.exec(
        select(Deck).order_by(Deck.created_at.desc(), Deck.id.desc())  # type: ignore
    ).all()


def get_deck(session: Session, deck_id: int) -> Deck:
    deck = session.get(Deck, deck_id)
    if not deck:
        raise NotFoundError(f"Deck with id {deck_id} not found")
    return deck


def create_deck(session: Session, request: CreateDeckRequest) -> Deck:
    deck = Deck(
        title=request.title,
        description=request.description,
        category=request.category,
        is_shared=request.is_shared,
        ai_generated=request.ai_generated
    )
    session.add(deck)
    session.commit()
    session.refresh(deck)

    logger.info(f"Created deck {deck.id} ({deck.title!r})")
    return deck


def update_deck(session: Session, deck_id: int, request: UpdateDeckRequest) -> Deck:
    """Update the fields present in the request; blank description/category clear them."""
    deck = get_deck(session, deck_id)

    if request.title is not None:
        deck.title = request.title
    if request.description is not None:
        deck.description = request.description if request.description.strip() else None
    if request.category is not None:
        deck.category = request.category.strip() if request.category.strip() else None
    if request.is_shared is not None:
        deck.is_shared = request.is_shared

    session.add(deck)
    session.commit()
    session.refresh(deck)
    return deck


def delete_deck(session: Session, deck_id: int) -> int:
    """
    Delete a deck together with its flashcards.

    Returns:
        Number of flashcards deleted with the deck
    """
    deck = get_deck(session, deck_id)
    flashcard_count = len(deck.flashcards)

    session.delete(deck)
    session.commit()

    logger.info(f"Deleted deck {deck_id} and {flashcard_count} flashcard(s)")
    return flashcard_count


# ============================================================================
# Flashcards
# ============================================================================

def list_flashcards(session: Session, deck_id: int) -> List[Flashcard]:
    """Get a deck's flashcards in insertion order."""
    get_deck(session, deck_id)
    return session.exec(
        select(Flashcard)
        .where(Flashcard.deck_id == deck_id)
        .order_by(Flashcard.id)
    ).all()


def get_flashcard(session: Session, flashcard_id: int) -> Flashcard:
    flashcard = session.get(Flashcard, flashcard_id)
    if not flashcard:
        raise NotFoundError(f"Flashcard with id {flashcard_id} not found")
    return flashcard


def create_flashcard(session: Session, request: CreateFlashcardRequest) -> Flashcard:
    get_deck(session, request.deck_id)

    flashcard = Flashcard(
        deck_id=request.deck_id,
        front=request.front,
        back=request.back,
        difficulty=request.difficulty,
        spaced_repetition_data=request.spaced_repetition_data,
        ai_generated=request.ai_generated
    )
    session.add(flashcard)
    session.commit()
    session.refresh(flashcard)
    return flashcard


def update_flashcard(session: Session, flashcard_id: int, request: UpdateFlashcardRequest) -> Flashcard:
    """
    Update the fields present in the request.

    Raises:
        NotFoundError: If the flashcard does not exist
        ValidationError: If the change would put next_review before last_reviewed
    """
    flashcard = get_flashcard(session, flashcard_id)
    changes: Dict[str, Any] = request.model_dump(exclude_unset=True)

    for key in ("last_reviewed", "next_review"):
        if changes.get(key) is not None:
            changes[key] = to_naive_utc(changes[key])

    last_reviewed = changes.get("last_reviewed", flashcard.last_reviewed)
    next_review = changes.get("next_review", flashcard.next_review)
    if last_reviewed and next_review and next_review < last_reviewed:
        raise ValidationError("next_review must not be earlier than last_reviewed")

    for key, value in changes.items():
        if value is None and key not in ("last_reviewed", "next_review"):
            continue
        setattr(flashcard, key, value)

    session.add(flashcard)
    session.commit()
    session.refresh(flashcard)
    return flashcard


def delete_flashcard(session: Session, flashcard_id: int) -> None:
    flashcard = get_flashcard(session, flashcard_id)
    session.delete(flashcard)
    session.commit()


def get_flashcards_for_review(
    session: Session,
    deck_id: int,
    now: Optional[datetime] = None
) -> List[Flashcard]:
    """
    Get a deck's flashcards that are due: never reviewed, or next_review at or before now.
    """
    get_deck(session, deck_id)
    if now is None:
        now = utcnow()

    return session.exec(
        select(Flashcard)
        .where(
            Flashcard.deck_id == deck_id,
            or_(
                Flashcard.next_review.is_(None),  # type: ignore[union-attr]
                Flashcard.next_review <= now
            )
        )
        .order_by(Flashcard.id)
    ).all()


def get_deck_stats(session: Session, deck_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Mastery and due counts for a deck.

    Returns:
        Dict with deck_id, card_count, mastered_count, due_count and
        mastery_percentage (0 for an empty deck)
    """
    flashcards = list_flashcards(session, deck_id)
    if now is None:
        now = utcnow()

    card_count = len(flashcards)
    mastered_count = sum(1 for flashcard in flashcards if is_mastered(flashcard))
    due_count = sum(1 for flashcard in flashcards if is_due(flashcard, now))
    mastery_percentage = (mastered_count / card_count) * 100 if card_count > 0 else 0.0

    return {
        'deck_id': deck_id,
        'card_count': card_count,
        'mastered_count': mastered_count,
        'due_count': due_count,
        'mastery_percentage': mastery_percentage
    }
