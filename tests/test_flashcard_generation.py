import pytest
import requests

from studyflow.core.config import settings
from studyflow.core.exceptions import ContentGenerationError, ValidationError
from studyflow.services import flashcard_generation_service, llm_service
from studyflow.services.flashcard_generation_service import (
    build_flashcard_prompt,
    generate_flashcards,
    parse_generated_flashcards,
)
from studyflow.services.llm_service import call_gemini_api, extract_json_text

API = "/api/v1"

TOKEN_USAGE = {"prompt_tokens": 10, "output_tokens": 20, "total_tokens": 30, "cost_usd": 0.0, "model_name": "test"}


@pytest.fixture
def fake_llm(monkeypatch):
    """Replace the Gemini call with a canned reply; returns the list of prompts sent."""
    calls = []
    reply = {"flashcards": [
        {"front": "What do plants make in photosynthesis?", "back": "Glucose and oxygen", "difficulty": 2},
        {"front": "Where does photosynthesis happen?", "back": "In chloroplasts", "difficulty": 9},
    ]}

    def _call(prompt, system_instruction=None):
        calls.append(prompt)
        return reply, TOKEN_USAGE

    monkeypatch.setattr(flashcard_generation_service, "call_gemini_api", _call)
    return calls


def test_build_flashcard_prompt_mentions_count_and_content():
    prompt = build_flashcard_prompt("Mitochondria make ATP.", 4)

    assert "Generate 4 educational flashcards" in prompt
    assert "Mitochondria make ATP." in prompt
    assert '"flashcards"' in prompt


def test_parse_generated_flashcards_cleans_reply():
    data = {"flashcards": [
        {"front": " Q1 ", "back": "A1", "difficulty": "4"},
        {"front": "", "back": "no question"},
        "not an object",
        {"front": "Q2", "back": "A2"},
        {"front": "Q3", "back": "A3", "difficulty": 0},
        {"front": "Q4", "back": "A4"},
    ]}

    cards = parse_generated_flashcards(data, count=3)

    assert [(card.front, card.back, card.difficulty) for card in cards] == [
        ("Q1", "A1", 4),
        ("Q2", "A2", 3),
        ("Q3", "A3", 1),
    ]


def test_parse_generated_flashcards_accepts_bare_list():
    cards = parse_generated_flashcards([{"front": "Q", "back": "A", "difficulty": 5}], count=10)

    assert len(cards) == 1


def test_parse_generated_flashcards_rejects_other_shapes():
    with pytest.raises(ContentGenerationError):
        parse_generated_flashcards("flashcards", count=1)
    with pytest.raises(ContentGenerationError):
        parse_generated_flashcards({"flashcards": "none"}, count=1)


def test_generate_flashcards_validates_input(fake_llm):
    with pytest.raises(ValidationError):
        generate_flashcards("   ", 3)
    with pytest.raises(ValidationError):
        generate_flashcards("text", settings.flashcard_generation_max_count + 1)
    assert fake_llm == []


def test_extract_json_text_strips_code_fence():
    assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert extract_json_text('  {"a": 1} ') == '{"a": 1}'


def test_call_gemini_api_parses_reply(monkeypatch):
    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return {
                "candidates": [{"content": {"parts": [{"text": '```json\n{"flashcards": []}\n```'}]}}],
                "usageMetadata": {"promptTokenCount": 100, "candidatesTokenCount": 50, "totalTokenCount": 150},
            }

    captured = {}

    def fake_post(url, **kwargs):
        captured["url"] = url
        captured.update(kwargs)
        return FakeResponse()

    monkeypatch.setattr(settings, "google_gemini_api_key", "test-key")
    monkeypatch.setattr(llm_service.requests, "post", fake_post)

    data, usage = call_gemini_api("prompt", system_instruction="be brief")

    assert data == {"flashcards": []}
    assert usage["total_tokens"] == 150
    assert usage["cost_usd"] > 0
    assert captured["params"] == {"key": "test-key"}
    assert captured["json"]["systemInstruction"]["parts"][0]["text"] == "be brief"
    assert settings.gemini_model_name in captured["url"]


def test_call_gemini_api_without_key(monkeypatch):
    monkeypatch.setattr(settings, "google_gemini_api_key", "")

    with pytest.raises(ContentGenerationError):
        call_gemini_api("prompt")


def test_call_gemini_api_wraps_request_errors(monkeypatch):
    def fake_post(url, **kwargs):
        raise requests.exceptions.ConnectionError("unreachable")

    monkeypatch.setattr(settings, "google_gemini_api_key", "test-key")
    monkeypatch.setattr(llm_service.requests, "post", fake_post)

    with pytest.raises(ContentGenerationError):
        call_gemini_api("prompt")


def test_generate_endpoint_without_deck(client, fake_llm):
    response = client.post(f"{API}/flashcards/generate", json={"content": "Photosynthesis basics", "count": 2})

    assert response.status_code == 200
    body = response.json()
    assert [card["difficulty"] for card in body["flashcards"]] == [2, 5]
    assert body["saved_flashcards"] == []
    assert body["token_usage"]["total_tokens"] == 30
    assert "Photosynthesis basics" in fake_llm[0]


def test_generate_endpoint_saves_to_deck(client, make_deck, fake_llm):
    deck_id, _ = make_deck(fronts=())

    body = client.post(f"{API}/flashcards/generate", json={
        "content": "Photosynthesis basics",
        "count": 2,
        "deck_id": deck_id,
    }).json()

    saved = body["saved_flashcards"]
    assert len(saved) == 2
    assert all(card["ai_generated"] for card in saved)
    assert all(card["difficulty"] == 0 and card["next_review"] is None for card in saved)
    assert saved[1]["spaced_repetition_data"] == {"generated_difficulty": 5}
    assert len(client.get(f"{API}/decks/{deck_id}/flashcards").json()["flashcards"]) == 2


def test_generate_endpoint_checks_deck_before_calling_llm(client, fake_llm):
    response = client.post(f"{API}/flashcards/generate", json={"content": "text", "count": 2, "deck_id": 77})

    assert response.status_code == 404
    assert fake_llm == []


def test_generate_endpoint_reports_provider_failure(client, monkeypatch):
    def failing_call(prompt, system_instruction=None):
        raise ContentGenerationError("Gemini API request failed")

    monkeypatch.setattr(flashcard_generation_service, "call_gemini_api", failing_call)

    response = client.post(f"{API}/flashcards/generate", json={"content": "text", "count": 2})

    assert response.status_code == 502
    assert response.json()["type"] == "ContentGenerationError"
