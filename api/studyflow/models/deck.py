"""
Deck model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from studyflow.utils.time_utils import utcnow

if TYPE_CHECKING:
    from studyflow.models.flashcard import Flashcard


class Deck(SQLModel, table=True):
    """Flashcard deck table - a named collection of flashcards."""
    __tablename__ = "flashcard_decks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_shared: bool = Field(default=False)
    ai_generated: bool = Field(default=False)  # True if the deck was created from generated content
    created_at: datetime = Field(default_factory=utcnow)

    # Relationships - the deck owns its cards, deleting it deletes them
    flashcards: List["Flashcard"] = Relationship(
        back_populates="deck",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
