"""
Study session service.

A study session is one pass through a deck's cards: a cursor over an ordered
list of card snapshots plus the set of cards answered so far. Sessions are
plain objects handed back to the caller, who passes them into every
operation; the controller itself keeps no per-session state.

State machine:

    NOT_STARTED --start--> IN_PROGRESS --answer last card--> COMPLETED
    any state --close--> CLOSED
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from studyflow.core.exceptions import (
    EmptyDeckError,
    InvalidStateError,
    NotFoundError,
    PersistenceFailureError,
)
from studyflow.services.card_store import CardSnapshot, CardStore
from studyflow.services.scheduler_service import (
    Quality,
    ReviewResult,
    is_due,
    parse_quality,
    schedule,
)
from studyflow.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle states of a study session."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"


@dataclass
class StudySession:
    """Ordered cards of one deck, a cursor, and the ids answered so far."""
    deck_id: int
    cards: List[CardSnapshot] = field(default_factory=list)
    current_index: int = 0
    reviewed_card_ids: Set[int] = field(default_factory=set)
    state: SessionState = SessionState.NOT_STARTED
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class ReviewEvent:
    """One answer given during a session."""
    card_id: int
    quality: Quality
    answered_at: datetime


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of answering the card under the cursor."""
    event: ReviewEvent
    result: ReviewResult
    card: CardSnapshot  # Card state after the answer
    session: StudySession


def due_order_key(card: CardSnapshot):
    """Never-reviewed cards first, then by earliest next review."""
    if card.next_review is None:
        return (0, datetime.min)
    return (1, card.next_review)


class StudySessionController:
    """Drives study sessions against a card store."""

    def __init__(self, card_store: CardStore, clock: Optional[Callable[[], datetime]] = None):
        self.card_store = card_store
        self.clock = clock or utcnow

    def start_session(self, deck_id: int, due_only: bool = False) -> StudySession:
        """
        Start a session over a deck's cards.

        Cards are ordered by due date (sorted() is stable, so cards with the
        same due date keep the store's order). With `due_only`, cards whose
        next review is still in the future are left out.

        Raises:
            EmptyDeckError: If there are no cards to study
        """
        now = self.clock()
        cards = self.card_store.load_cards(deck_id)
        if due_only:
            cards = [card for card in cards if is_due(card, now)]

        if not cards:
            raise EmptyDeckError(deck_id, due_only=due_only)

        session = StudySession(
            deck_id=deck_id,
            cards=sorted(cards, key=due_order_key),
            started_at=now,
        )
        session.state = SessionState.IN_PROGRESS

        logger.info(
            f"Started study session {session.session_id} for deck {deck_id} "
            f"with {session.total} card(s) (due_only={due_only})"
        )
        return session

    def answer(self, session: StudySession, quality) -> AnswerResult:
        """
        Grade the card under the cursor and move to the next one.

        The card is scheduled, its snapshot replaced, and the cursor advanced
        before the review is saved. If the save fails the advance stands and
        PersistenceFailureError is raised carrying the session and the
        computed result, so the caller can retry `save_card_review`.

        Raises:
            InvalidStateError: If the session is not in progress
            InvalidQualityError: If quality is not hard, medium or easy
            PersistenceFailureError: If the card store could not save the review
        """
        self._require_in_progress(session, "answer")
        rating = parse_quality(quality)

        now = self.clock()
        index = session.current_index
        card = session.cards[index]
        result = schedule(card, rating, now)

        updated_card = replace(
            card,
            difficulty=result.difficulty,
            last_reviewed=result.last_reviewed,
            next_review=result.next_review,
        )
        session.cards[index] = updated_card
        session.reviewed_card_ids.add(card.id)
        session.current_index = index + 1
        if session.current_index >= session.total:
            session.state = SessionState.COMPLETED
            session.completed_at = now
            logger.info(
                f"Study session {session.session_id} completed: "
                f"{len(session.reviewed_card_ids)}/{session.total} card(s) reviewed"
            )

        event = ReviewEvent(card_id=card.id, quality=rating, answered_at=now)

        try:
            self.card_store.save_card_review(card.id, result)
        except PersistenceFailureError as e:
            e.session = session
            e.result = result
            e.card_id = card.id
            logger.error(
                f"Study session {session.session_id}: review of card {card.id} was not saved: {str(e)}"
            )
            raise

        return AnswerResult(event=event, result=result, card=updated_card, session=session)

    def previous(self, session: StudySession) -> StudySession:
        """Move the cursor back one card without grading; no-op on the first card."""
        self._require_in_progress(session, "move back in")
        if session.current_index > 0:
            session.current_index -= 1
        return session

    def next(self, session: StudySession) -> StudySession:
        """Move the cursor forward one card without grading; no-op on the last card."""
        self._require_in_progress(session, "move forward in")
        if session.current_index < session.total - 1:
            session.current_index += 1
        return session

    def close(self, session: StudySession) -> StudySession:
        """End the session from any state. Reviews already saved stay saved."""
        if session.state != SessionState.CLOSED:
            logger.info(
                f"Closed study session {session.session_id} in state {session.state.value}"
            )
        session.state = SessionState.CLOSED
        return session

    @staticmethod
    def is_complete(session: StudySession) -> bool:
        return session.state == SessionState.COMPLETED

    @staticmethod
    def current_card(session: StudySession) -> Optional[CardSnapshot]:
        if 0 <= session.current_index < session.total:
            return session.cards[session.current_index]
        return None

    @staticmethod
    def progress(session: StudySession) -> Dict[str, float]:
        """Counts for a progress bar: reviewed cards, total, 1-based position and percent reviewed."""
        reviewed = len(session.reviewed_card_ids)
        total = session.total
        return {
            "reviewed": reviewed,
            "total": total,
            "position": min(session.current_index + 1, total),
            "percent": (reviewed / total) * 100 if total > 0 else 0.0,
        }

    @staticmethod
    def _require_in_progress(session: StudySession, operation: str) -> None:
        if session.state != SessionState.IN_PROGRESS:
            raise InvalidStateError(operation, session.state)


class StudySessionRegistry:
    """
    Open study sessions keyed by handle.

    The API keeps one registry on the application state and injects it into
    the study session endpoints; sessions never live in module globals.

    Ended sessions (completed or closed) and sessions started more than
    `max_age` ago are evicted whenever a new session is added.
    """

    def __init__(
        self,
        max_age: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._sessions: Dict[str, StudySession] = {}
        self.max_age = max_age
        self.clock = clock or utcnow

    def add(self, session: StudySession) -> StudySession:
        self.prune()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> StudySession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Study session {session_id} not found")
        return session

    def discard(self, session_id: str) -> Optional[StudySession]:
        return self._sessions.pop(session_id, None)

    def prune(self) -> int:
        """Drop ended and expired sessions. Returns how many were removed."""
        cutoff = self.clock() - self.max_age if self.max_age is not None else None
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.state in (SessionState.COMPLETED, SessionState.CLOSED)
            or (cutoff is not None and session.started_at is not None and session.started_at < cutoff)
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"Evicted {len(expired)} study session(s); {len(self._sessions)} open")
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
