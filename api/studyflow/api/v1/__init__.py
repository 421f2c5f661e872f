"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from studyflow.api.v1.endpoints import decks, flashcards, study_sessions

api_router = APIRouter()

# Include all endpoint routers
# Note: Each router already defines its own prefix, so we don't add another one here
api_router.include_router(decks.router)
api_router.include_router(flashcards.router)
api_router.include_router(study_sessions.router)
