from datetime import timedelta

import pytest
from sqlmodel import Session

from studyflow.models.models import Flashcard
from studyflow.utils.time_utils import utcnow

API = "/api/v1"


def test_root_and_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["message"] == "StudyFlow API"


def test_create_and_get_deck(client):
    response = client.post(f"{API}/decks", json={
        "title": "  Cell Biology ",
        "description": "Organelles and membranes",
        "category": "biology",
    })

    assert response.status_code == 201
    deck = response.json()
    assert deck["title"] == "Cell Biology"
    assert deck["is_shared"] is False
    assert deck["ai_generated"] is False

    fetched = client.get(f"{API}/decks/{deck['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["description"] == "Organelles and membranes"


def test_create_deck_requires_title(client):
    assert client.post(f"{API}/decks", json={"title": "   "}).status_code == 422
    assert client.post(f"{API}/decks", json={}).status_code == 422


def test_list_decks_newest_first(client):
    for title in ("First", "Second", "Third"):
        client.post(f"{API}/decks", json={"title": title})

    titles = [deck["title"] for deck in client.get(f"{API}/decks").json()["decks"]]

    assert titles == ["Third", "Second", "First"]


def test_update_deck(client):
    deck_id = client.post(f"{API}/decks", json={"title": "Draft", "category": "misc"}).json()["id"]

    response = client.patch(f"{API}/decks/{deck_id}", json={"title": "Final", "category": " ", "is_shared": True})

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Final"
    assert body["category"] is None
    assert body["is_shared"] is True


def test_missing_deck_is_404(client):
    assert client.get(f"{API}/decks/999").status_code == 404
    assert client.patch(f"{API}/decks/999", json={"title": "x"}).status_code == 404
    assert client.delete(f"{API}/decks/999").status_code == 404
    response = client.get(f"{API}/decks/999/flashcards")
    assert response.status_code == 404
    assert response.json()["type"] == "NotFoundError"


def test_delete_deck_cascades_to_flashcards(client, engine, make_deck):
    deck_id, card_ids = make_deck(fronts=("A", "B"))

    response = client.delete(f"{API}/decks/{deck_id}")

    assert response.status_code == 200
    assert response.json()["deleted_flashcards_count"] == 2
    assert client.get(f"{API}/decks/{deck_id}").status_code == 404
    with Session(engine) as session:
        assert all(session.get(Flashcard, card_id) is None for card_id in card_ids)


def test_deck_flashcards_and_due_cards(client, engine, make_deck):
    deck_id, card_ids = make_deck(fronts=("new", "later", "overdue"))
    now = utcnow()
    with Session(engine) as session:
        later = session.get(Flashcard, card_ids[1])
        later.difficulty = 3
        later.last_reviewed = now
        later.next_review = now + timedelta(days=3)
        overdue = session.get(Flashcard, card_ids[2])
        overdue.difficulty = 1
        overdue.last_reviewed = now - timedelta(days=2)
        overdue.next_review = now - timedelta(days=1)
        session.add(later)
        session.add(overdue)
        session.commit()

    all_cards = client.get(f"{API}/decks/{deck_id}/flashcards").json()["flashcards"]
    assert [card["front"] for card in all_cards] == ["new", "later", "overdue"]

    due_cards = client.get(f"{API}/decks/{deck_id}/flashcards/due").json()["flashcards"]
    assert [card["front"] for card in due_cards] == ["new", "overdue"]

    stats = client.get(f"{API}/decks/{deck_id}/stats").json()
    assert stats == {
        "deck_id": deck_id,
        "card_count": 3,
        "mastered_count": 1,
        "due_count": 2,
        "mastery_percentage": pytest.approx(100 / 3),
    }


def test_stats_for_empty_deck(client, make_deck):
    deck_id, _ = make_deck(fronts=())

    stats = client.get(f"{API}/decks/{deck_id}/stats").json()

    assert stats["card_count"] == 0
    assert stats["mastery_percentage"] == 0.0
