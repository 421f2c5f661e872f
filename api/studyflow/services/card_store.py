"""
Card store used by study sessions.

Study sessions only need two things from persistence: the cards of a deck and
a way to write back one review. `CardStore` names that contract so the
session controller can run against the database or an in-memory fake.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportArgumentType=false
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from studyflow.core.exceptions import NotFoundError, PersistenceFailureError
from studyflow.models.models import Deck, Flashcard
from studyflow.services.scheduler_service import ReviewResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardSnapshot:
    """Immutable copy of a flashcard's review state, detached from the database session."""
    id: int
    deck_id: int
    front: str
    back: str
    difficulty: int = 0
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None

    @classmethod
    def from_flashcard(cls, flashcard: Flashcard) -> "CardSnapshot":
        return cls(
            id=flashcard.id,
            deck_id=flashcard.deck_id,
            front=flashcard.front,
            back=flashcard.back,
            difficulty=flashcard.difficulty or 0,
            last_reviewed=flashcard.last_reviewed,
            next_review=flashcard.next_review,
        )


class CardStore(Protocol):
    """Persistence operations a study session depends on."""

    def load_cards(self, deck_id: int) -> List[CardSnapshot]:
        ...

    def save_card_review(self, card_id: int, result: ReviewResult) -> None:
        ...


class SQLModelCardStore:
    """CardStore backed by the flashcards table."""

    def __init__(self, session: Session):
        self.session = session

    def load_cards(self, deck_id: int) -> List[CardSnapshot]:
        """
        Load a deck's cards in insertion order.

        Raises:
            NotFoundError: If the deck does not exist
        """
        deck = self.session.get(Deck, deck_id)
        if not deck:
            raise NotFoundError(f"Deck with id {deck_id} not found")

        flashcards = self.session.exec(
            select(Flashcard)
            .where(Flashcard.deck_id == deck_id)
            .order_by(Flashcard.id)  # type: ignore
        ).all()
        return [CardSnapshot.from_flashcard(flashcard) for flashcard in flashcards]

    def save_card_review(self, card_id: int, result: ReviewResult) -> None:
        """
        Write difficulty, last_reviewed and next_review for one card.

        Writing the same result twice leaves the card unchanged, so callers
        may retry after a failure.

        Raises:
            PersistenceFailureError: If the card is gone or the write fails
        """
        try:
            flashcard = self.session.get(Flashcard, card_id)
            if not flashcard:
                raise PersistenceFailureError(
                    f"Flashcard with id {card_id} no longer exists",
                    card_id=card_id,
                    result=result
                )

            flashcard.difficulty = result.difficulty
            flashcard.last_reviewed = result.last_reviewed
            flashcard.next_review = result.next_review
            self.session.add(flashcard)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to save review for flashcard {card_id}: {str(e)}")
            raise PersistenceFailureError(
                f"Could not save review for flashcard {card_id}",
                card_id=card_id,
                result=result
            ) from e
