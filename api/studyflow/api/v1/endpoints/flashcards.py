"""
Flashcard CRUD and generation endpoints.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from studyflow.core.database import get_session
from studyflow.schemas.flashcard import (
    CreateFlashcardRequest,
    FlashcardResponse,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    UpdateFlashcardRequest,
)
from studyflow.services import flashcard_service
from studyflow.services.flashcard_generation_service import generate_and_save_flashcards

router = APIRouter(prefix="/flashcards", tags=["flashcards"])


@router.post("/generate", response_model=GenerateFlashcardsResponse)
async def generate_flashcards(
    request: GenerateFlashcardsRequest,
    session: Session = Depends(get_session)
):
    """
    Generate flashcards from study material with the LLM.

    When deck_id is given the generated cards are also saved to that deck
    (marked ai_generated, unreviewed).
    """
    generated, saved, token_usage = generate_and_save_flashcards(
        session,
        content=request.content,
        count=request.count,
        deck_id=request.deck_id
    )
    return GenerateFlashcardsResponse(
        flashcards=generated,
        saved_flashcards=[FlashcardResponse.model_validate(flashcard) for flashcard in saved],
        token_usage=token_usage
    )


@router.post("", response_model=FlashcardResponse, status_code=status.HTTP_201_CREATED)
async def create_flashcard(
    request: CreateFlashcardRequest,
    session: Session = Depends(get_session)
):
    """Create a flashcard in an existing deck."""
    flashcard = flashcard_service.create_flashcard(session, request)
    return FlashcardResponse.model_validate(flashcard)


@router.get("/{flashcard_id}", response_model=FlashcardResponse)
async def get_flashcard(flashcard_id: int, session: Session = Depends(get_session)):
    """Get a flashcard by ID."""
    flashcard = flashcard_service.get_flashcard(session, flashcard_id)
    return FlashcardResponse.model_validate(flashcard)


@router.patch("/{flashcard_id}", response_model=FlashcardResponse)
async def update_flashcard(
    flashcard_id: int,
    request: UpdateFlashcardRequest,
    session: Session = Depends(get_session)
):
    """Update a flashcard by ID. Only provided fields are changed."""
    flashcard = flashcard_service.update_flashcard(session, flashcard_id, request)
    return FlashcardResponse.model_validate(flashcard)


@router.delete("/{flashcard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_flashcard(flashcard_id: int, session: Session = Depends(get_session)):
    """Delete a flashcard by ID."""
    flashcard_service.delete_flashcard(session, flashcard_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
