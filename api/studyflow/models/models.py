"""
Models module - re-exports all models.

Endpoints and services import from here:
    from studyflow.models.models import Deck, Flashcard
"""
from studyflow.models.deck import Deck
from studyflow.models.flashcard import Flashcard

__all__ = [
    'Deck',
    'Flashcard',
]
