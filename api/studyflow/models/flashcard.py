"""
Flashcard model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy import Column, ForeignKey, Integer, JSON

if TYPE_CHECKING:
    from studyflow.models.deck import Deck


class Flashcard(SQLModel, table=True):
    """Flashcard table - a front/back card with its review state."""
    __tablename__ = "flashcards"

    id: Optional[int] = Field(default=None, primary_key=True)
    deck_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("flashcard_decks.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )
    )
    front: str
    back: str
    difficulty: int = Field(default=0)  # Latest self-rating: 0 = never reviewed, 1 = hard, 2 = medium, 3 = easy
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None  # Calculated by the review scheduler
    spaced_repetition_data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))  # Reserved for a future scheduling algorithm
    ai_generated: bool = Field(default=False)

    # Relationships
    deck: Optional["Deck"] = Relationship(back_populates="flashcards")
