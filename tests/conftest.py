"""Pytest configuration: in-memory SQLite database and an API client bound to it."""

import os

# Settings refuse to load without DATABASE_URL; point the app at an in-memory
# SQLite database before anything from studyflow is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime  # noqa: E402
from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from studyflow.core.database import build_engine, get_session  # noqa: E402
from studyflow.core.exceptions import NotFoundError, PersistenceFailureError  # noqa: E402
from studyflow.main import app  # noqa: E402
from studyflow.models.models import Deck, Flashcard  # noqa: E402
from studyflow.services.card_store import CardSnapshot  # noqa: E402
from studyflow.services.scheduler_service import ReviewResult  # noqa: E402
from studyflow.services.study_session_service import StudySessionRegistry  # noqa: E402

NOW = datetime(2026, 1, 15, 9, 30)


class FakeCardStore:
    """In-memory CardStore recording every saved review."""

    def __init__(self, decks: Optional[Dict[int, List[CardSnapshot]]] = None):
        self.decks = decks or {}
        self.saved: List[tuple] = []
        self.fail_saves = False

    def load_cards(self, deck_id: int) -> List[CardSnapshot]:
        if deck_id not in self.decks:
            raise NotFoundError(f"Deck with id {deck_id} not found")
        return list(self.decks[deck_id])

    def save_card_review(self, card_id: int, result: ReviewResult) -> None:
        if self.fail_saves:
            raise PersistenceFailureError("database unavailable", card_id=card_id, result=result)
        self.saved.append((card_id, result))


def make_card(card_id: int, deck_id: int = 1, **kwargs) -> CardSnapshot:
    return CardSnapshot(
        id=card_id,
        deck_id=deck_id,
        front=kwargs.pop("front", f"Question {card_id}"),
        back=kwargs.pop("back", f"Answer {card_id}"),
        **kwargs,
    )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def make_deck(engine):
    """Factory creating a deck with the given card fronts; returns (deck_id, [card_ids])."""

    def _make_deck(fronts=("A", "B", "C"), title="Biology", **card_fields):
        with Session(engine) as session:
            deck = Deck(title=title)
            session.add(deck)
            session.commit()
            session.refresh(deck)
            card_ids = []
            for front in fronts:
                flashcard = Flashcard(deck_id=deck.id, front=front, back=f"{front} answer", **card_fields)
                session.add(flashcard)
                session.commit()
                session.refresh(flashcard)
                card_ids.append(flashcard.id)
            return deck.id, card_ids

    return _make_deck


@pytest.fixture
def client(engine):
    def _get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override
    app.state.study_sessions = StudySessionRegistry()
    yield TestClient(app)
    app.dependency_overrides.clear()
