"""
Study session endpoints.

A client starts a session on a deck, gets back a session_id, and drives the
session through answer/previous/next calls until it is complete or closed.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel import Session

from studyflow.core.database import get_session
from studyflow.schemas.study_session import (
    AnswerRequest,
    AnswerResponse,
    StartStudySessionRequest,
    StudySessionResponse,
)
from studyflow.services.card_store import SQLModelCardStore
from studyflow.services.study_session_service import (
    StudySessionController,
    StudySessionRegistry,
)

router = APIRouter(prefix="/study-sessions", tags=["study-sessions"])


def get_study_session_registry(request: Request) -> StudySessionRegistry:
    """Dependency returning the registry of open study sessions kept on the app state."""
    return request.app.state.study_sessions


def get_study_session_controller(
    session: Session = Depends(get_session)
) -> StudySessionController:
    """Dependency building a controller over the request's database session."""
    return StudySessionController(SQLModelCardStore(session))


@router.post("", response_model=StudySessionResponse, status_code=status.HTTP_201_CREATED)
async def start_study_session(
    request: StartStudySessionRequest,
    controller: StudySessionController = Depends(get_study_session_controller),
    registry: StudySessionRegistry = Depends(get_study_session_registry)
):
    """
    Start studying a deck.

    Cards are ordered by due date. Returns 400 when the deck has no cards
    (or no due cards with due_only) and 404 when the deck does not exist.
    """
    study_session = controller.start_session(request.deck_id, due_only=request.due_only)
    registry.add(study_session)
    return StudySessionResponse.from_session(study_session)


@router.get("/{session_id}", response_model=StudySessionResponse)
async def get_study_session(
    session_id: str,
    registry: StudySessionRegistry = Depends(get_study_session_registry)
):
    """Get the current state of a study session."""
    return StudySessionResponse.from_session(registry.get(session_id))


@router.post("/{session_id}/answer", response_model=AnswerResponse)
async def answer_card(
    session_id: str,
    request: AnswerRequest,
    controller: StudySessionController = Depends(get_study_session_controller),
    registry: StudySessionRegistry = Depends(get_study_session_registry)
):
    """
    Rate the card under the cursor and advance.

    Returns 409 when the session is not in progress. If the review could not
    be saved the response is 503 and the session has still advanced. Once the
    last card is answered the session is discarded.
    """
    study_session = registry.get(session_id)
    try:
        answer = controller.answer(study_session, request.quality)
    finally:
        if StudySessionController.is_complete(study_session):
            registry.discard(session_id)
    return AnswerResponse.from_answer(answer)


@router.post("/{session_id}/previous", response_model=StudySessionResponse)
async def previous_card(
    session_id: str,
    controller: StudySessionController = Depends(get_study_session_controller),
    registry: StudySessionRegistry = Depends(get_study_session_registry)
):
    """Move back one card without rating it."""
    study_session = controller.previous(registry.get(session_id))
    return StudySessionResponse.from_session(study_session)


@router.post("/{session_id}/next", response_model=StudySessionResponse)
async def next_card(
    session_id: str,
    controller: StudySessionController = Depends(get_study_session_controller),
    registry: StudySessionRegistry = Depends(get_study_session_registry)
):
    """Move forward one card without rating it."""
    study_session = controller.next(registry.get(session_id))
    return StudySessionResponse.from_session(study_session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_study_session(
    session_id: str,
    controller: StudySessionController = Depends(get_study_session_controller),
    registry: StudySessionRegistry = Depends(get_study_session_registry)
):
    """Close a study session and forget it. Reviews already answered stay saved."""
    controller.close(registry.get(session_id))
    registry.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
