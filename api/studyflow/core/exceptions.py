"""
Custom exceptions for the application.
"""


class StudyFlowException(Exception):
    """Base exception for all StudyFlow application exceptions."""
    pass


class ValidationError(StudyFlowException):
    """Raised when validation fails."""
    pass


class NotFoundError(StudyFlowException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(StudyFlowException):
    """Raised when there's a conflict (e.g., duplicate entry)."""
    pass


class InvalidQualityError(ValidationError):
    """Raised when a review rating is not one of Hard, Medium or Easy."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid review quality {value!r}: expected 1 (hard), 2 (medium) or 3 (easy)")


class EmptyDeckError(ValidationError):
    """Raised when a study session is started on a deck without cards."""

    def __init__(self, deck_id: int, due_only: bool = False):
        self.deck_id = deck_id
        self.due_only = due_only
        if due_only:
            message = f"Deck {deck_id} has no cards due for review"
        else:
            message = f"Deck {deck_id} has no cards; add cards to study this deck"
        super().__init__(message)


class InvalidStateError(ConflictError):
    """Raised when a study session operation is not allowed in its current state."""

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        state_name = getattr(state, "value", state)
        super().__init__(f"Cannot {operation} a study session that is {state_name}")


class PersistenceFailureError(StudyFlowException):
    """
    Raised when the card store could not save a review.

    The study session keeps its cursor advance; `session` and `result`
    carry what was computed so the caller can retry the save.
    """

    def __init__(self, message: str, card_id=None, result=None, session=None):
        self.card_id = card_id
        self.result = result
        self.session = session
        super().__init__(message)


class ContentGenerationError(StudyFlowException):
    """Raised when the external LLM provider fails or returns unusable content."""
    pass
