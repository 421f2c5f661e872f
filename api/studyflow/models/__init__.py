"""
Models package - imports all models so they register with SQLModel metadata.
"""
from studyflow.models.deck import Deck
from studyflow.models.flashcard import Flashcard

__all__ = [
    'Deck',
    'Flashcard',
]
