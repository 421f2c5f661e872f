"""
Deck and flashcard schemas.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from studyflow.utils.time_utils import to_naive_utc


def _require_text(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("must not be blank")
    return v.strip()


class DeckResponse(BaseModel):
    """Deck response schema."""
    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_shared: bool = False
    ai_generated: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreateDeckRequest(BaseModel):
    """Request schema for creating a deck."""
    title: str = Field(..., description="Deck title")
    description: Optional[str] = None
    category: Optional[str] = None
    is_shared: bool = False
    ai_generated: bool = False

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _require_text(v)


class UpdateDeckRequest(BaseModel):
    """Request schema for updating a deck. Only provided fields change."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_shared: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _require_text(v)


class DecksResponse(BaseModel):
    """Response schema for decks list."""
    decks: List[DeckResponse]


class DeleteDeckResponse(BaseModel):
    """Response schema for deck deletion."""
    message: str
    deleted_flashcards_count: int


class DeckStatsResponse(BaseModel):
    """Mastery and due counts for one deck."""
    deck_id: int
    card_count: int
    mastered_count: int = Field(..., description="Cards whose latest rating was easy")
    due_count: int = Field(..., description="Cards never reviewed or past their next review")
    mastery_percentage: float


class FlashcardResponse(BaseModel):
    """Flashcard response schema."""
    id: int
    deck_id: int
    front: str
    back: str
    difficulty: int = 0
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None
    spaced_repetition_data: Dict[str, Any] = Field(default_factory=dict)
    ai_generated: bool = False

    class Config:
        from_attributes = True


class CreateFlashcardRequest(BaseModel):
    """
    Request schema for creating a flashcard.

    Review timestamps are not accepted here; they are set when the card is answered.
    """
    deck_id: int
    front: str
    back: str
    difficulty: int = Field(0, ge=0, description="Initial difficulty, 0 for never reviewed")
    spaced_repetition_data: Dict[str, Any] = Field(default_factory=dict)
    ai_generated: bool = False

    @field_validator("front", "back")
    @classmethod
    def check_text(cls, v: str) -> str:
        return _require_text(v)


class UpdateFlashcardRequest(BaseModel):
    """Request schema for updating a flashcard. Only provided fields change."""
    front: Optional[str] = None
    back: Optional[str] = None
    difficulty: Optional[int] = Field(None, ge=0)
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None
    spaced_repetition_data: Optional[Dict[str, Any]] = None

    @field_validator("front", "back")
    @classmethod
    def check_text(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _require_text(v)

    @field_validator("last_reviewed", "next_review")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored as naive UTC; a request may mix aware and naive values
        return None if v is None else to_naive_utc(v)

    @model_validator(mode="after")
    def check_review_order(self):
        if self.last_reviewed and self.next_review and self.next_review < self.last_reviewed:
            raise ValueError("next_review must not be earlier than last_reviewed")
        return self


class FlashcardsResponse(BaseModel):
    """Response schema for flashcards list."""
    flashcards: List[FlashcardResponse]


class GenerateFlashcardsRequest(BaseModel):
    """Request schema for generating flashcards from study material."""
    content: str = Field(..., description="Source text to turn into flashcards")
    count: int = Field(10, ge=1, description="Number of flashcards to generate")
    deck_id: Optional[int] = Field(None, description="If set, generated cards are saved to this deck")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return _require_text(v)

    class Config:
        json_schema_extra = {
            "example": {
                "content": "Photosynthesis converts light energy into chemical energy stored in glucose.",
                "count": 5,
                "deck_id": 1
            }
        }


class GeneratedFlashcard(BaseModel):
    """One card proposed by the LLM."""
    front: str
    back: str
    difficulty: int = Field(3, ge=1, le=5, description="Difficulty estimated by the LLM (1-5)")


class GenerateFlashcardsResponse(BaseModel):
    """Response schema for flashcard generation."""
    flashcards: List[GeneratedFlashcard]
    saved_flashcards: List[FlashcardResponse] = Field(default_factory=list)
    token_usage: Optional[Dict[str, Any]] = None
