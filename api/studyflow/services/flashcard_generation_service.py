"""
Flashcard generation service: turns study material into flashcards with an LLM.
"""
import logging
from typing import Any, List, Optional, Tuple

from sqlmodel import Session

from studyflow.core.config import settings
from studyflow.core.exceptions import ContentGenerationError, ValidationError
from studyflow.models.models import Flashcard
from studyflow.schemas.flashcard import GeneratedFlashcard
from studyflow.services.flashcard_service import get_deck
from studyflow.services.llm_service import call_gemini_api

logger = logging.getLogger(__name__)

MIN_GENERATED_DIFFICULTY = 1
MAX_GENERATED_DIFFICULTY = 5
DEFAULT_GENERATED_DIFFICULTY = 3

FLASHCARD_SYSTEM_INSTRUCTION = (
    "You are a study assistant that writes educational flashcards. "
    "Questions are clear and self-contained; answers are concise but complete. "
    "Always reply with JSON only."
)


def build_flashcard_prompt(content: str, count: int) -> str:
    """
    Build the user prompt asking for `count` flashcards about `content`.
    """
    return (
        f"Generate {count} educational flashcards from the following content.\n"
        f"Return a JSON object with a \"flashcards\" array. Each item has \"front\" (question), "
        f"\"back\" (answer) and \"difficulty\" (integer {MIN_GENERATED_DIFFICULTY}-{MAX_GENERATED_DIFFICULTY}).\n"
        f"Make the questions clear and the answers concise but complete.\n\n"
        f"Content: {content}\n\n"
        f"Format: {{\"flashcards\": [{{\"front\": \"question\", \"back\": \"answer\", \"difficulty\": 3}}]}}"
    )


def _coerce_difficulty(value: Any) -> int:
    try:
        difficulty = int(value)
    except (TypeError, ValueError):
        return DEFAULT_GENERATED_DIFFICULTY
    return max(MIN_GENERATED_DIFFICULTY, min(MAX_GENERATED_DIFFICULTY, difficulty))


def parse_generated_flashcards(data: Any, count: int) -> List[GeneratedFlashcard]:
    """
    Read flashcards out of the LLM's JSON reply.

    Accepts {"flashcards": [...]} or a bare list. Entries that are not
    objects or have a blank front or back are dropped; difficulty is clamped
    to 1-5 (3 when missing or not a number). At most `count` cards are kept.
    """
    if isinstance(data, dict):
        items = data.get("flashcards", [])
    elif isinstance(data, list):
        items = data
    else:
        raise ContentGenerationError("LLM reply is neither a flashcard list nor an object")

    if not isinstance(items, list):
        raise ContentGenerationError("LLM reply 'flashcards' is not a list")

    flashcards: List[GeneratedFlashcard] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning(f"Skipping generated flashcard that is not an object: {item!r}")
            continue
        front = str(item.get("front") or "").strip()
        back = str(item.get("back") or "").strip()
        if not front or not back:
            logger.warning(f"Skipping generated flashcard with blank side: {item!r}")
            continue
        flashcards.append(
            GeneratedFlashcard(front=front, back=back, difficulty=_coerce_difficulty(item.get("difficulty")))
        )
        if len(flashcards) >= count:
            break

    return flashcards


def generate_flashcards(content: str, count: int = 10) -> Tuple[List[GeneratedFlashcard], dict]:
    """
    Generate flashcards from study material.

    Args:
        content: Source text
        count: Number of flashcards wanted (1 to settings.flashcard_generation_max_count)

    Returns:
        Tuple of (generated flashcards, token usage)

    Raises:
        ValidationError: If content is blank or count is out of range
        ContentGenerationError: If the LLM call fails or returns unusable data
    """
    if not content or not content.strip():
        raise ValidationError("content must not be blank")

    max_count = settings.flashcard_generation_max_count
    if count < 1 or count > max_count:
        raise ValidationError(f"count must be between 1 and {max_count}")

    prompt = build_flashcard_prompt(content.strip(), count)
    llm_data, token_usage = call_gemini_api(prompt, system_instruction=FLASHCARD_SYSTEM_INSTRUCTION)
    flashcards = parse_generated_flashcards(llm_data, count)

    logger.info(
        f"Generated {len(flashcards)}/{count} flashcard(s) "
        f"(tokens={token_usage.get('total_tokens')}, cost_usd={token_usage.get('cost_usd', 0):.6f})"
    )
    return flashcards, token_usage


def save_generated_flashcards(
    session: Session,
    deck_id: int,
    generated: List[GeneratedFlashcard]
) -> List[Flashcard]:
    """
    Save generated flashcards to a deck.

    The LLM's difficulty estimate is kept in spaced_repetition_data; the
    review difficulty starts at 0 like any card that was never answered.
    """
    get_deck(session, deck_id)

    flashcards: List[Flashcard] = []
    for card in generated:
        flashcard = Flashcard(
            deck_id=deck_id,
            front=card.front,
            back=card.back,
            spaced_repetition_data={"generated_difficulty": card.difficulty},
            ai_generated=True
        )
        session.add(flashcard)
        flashcards.append(flashcard)

    session.commit()
    for flashcard in flashcards:
        session.refresh(flashcard)

    logger.info(f"Saved {len(flashcards)} generated flashcard(s) to deck {deck_id}")
    return flashcards


def generate_and_save_flashcards(
    session: Session,
    content: str,
    count: int,
    deck_id: Optional[int] = None
) -> Tuple[List[GeneratedFlashcard], List[Flashcard], dict]:
    """Generate flashcards and, when a deck is given, save them to it."""
    if deck_id is not None:
        # Deck must exist before any tokens are spent
        get_deck(session, deck_id)

    generated, token_usage = generate_flashcards(content, count)
    saved: List[Flashcard] = []
    if deck_id is not None and generated:
        saved = save_generated_flashcards(session, deck_id, generated)
    return generated, saved, token_usage
