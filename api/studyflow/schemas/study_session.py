"""
Study session schemas.
"""
from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime

from studyflow.services.study_session_service import (
    AnswerResult,
    SessionState,
    StudySession,
    StudySessionController,
)


class StartStudySessionRequest(BaseModel):
    """Request to start studying a deck."""
    deck_id: int = Field(..., description="Deck to study")
    due_only: bool = Field(False, description="Only include cards that are due for review")

    class Config:
        json_schema_extra = {
            "example": {
                "deck_id": 1,
                "due_only": False
            }
        }


class AnswerRequest(BaseModel):
    """Self-rated recall for the card under the cursor."""
    # Raw JSON value, validated by parse_quality
    quality: Any = Field(..., description="1/'hard', 2/'medium' or 3/'easy'")

    class Config:
        json_schema_extra = {
            "example": {
                "quality": 3
            }
        }


class SessionCardResponse(BaseModel):
    """A card as held by a study session."""
    id: int
    front: str
    back: str
    difficulty: int
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None

    class Config:
        from_attributes = True


class SessionProgress(BaseModel):
    reviewed: int
    total: int
    position: int = Field(..., description="1-based position of the cursor")
    percent: float = Field(..., description="Share of cards reviewed, 0-100")


class StudySessionResponse(BaseModel):
    """Current view of a study session."""
    session_id: str
    deck_id: int
    state: SessionState
    current_index: int
    total: int
    is_complete: bool
    current_card: Optional[SessionCardResponse] = None
    reviewed_card_ids: List[int]
    progress: SessionProgress
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_session(cls, session: StudySession) -> "StudySessionResponse":
        current = StudySessionController.current_card(session)
        return cls(
            session_id=session.session_id,
            deck_id=session.deck_id,
            state=session.state,
            current_index=session.current_index,
            total=session.total,
            is_complete=StudySessionController.is_complete(session),
            current_card=SessionCardResponse.model_validate(current) if current else None,
            reviewed_card_ids=sorted(session.reviewed_card_ids),
            progress=SessionProgress(**StudySessionController.progress(session)),
            started_at=session.started_at,
            completed_at=session.completed_at,
        )


class AnswerResponse(BaseModel):
    """Scheduling outcome of one answer plus the updated session."""
    card_id: int
    quality: int
    difficulty: int
    last_reviewed: datetime
    next_review: datetime
    session: StudySessionResponse

    @classmethod
    def from_answer(cls, answer: AnswerResult) -> "AnswerResponse":
        return cls(
            card_id=answer.event.card_id,
            quality=int(answer.event.quality),
            difficulty=answer.result.difficulty,
            last_reviewed=answer.result.last_reviewed,
            next_review=answer.result.next_review,
            session=StudySessionResponse.from_session(answer.session),
        )
