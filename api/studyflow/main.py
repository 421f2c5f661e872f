from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
import traceback
from datetime import timedelta
from studyflow.core.config import settings
from studyflow.core.database import init_db
from studyflow.core.exceptions import (
    StudyFlowException,
    ValidationError,
    NotFoundError,
    ConflictError,
    PersistenceFailureError,
    ContentGenerationError
)
from studyflow.services.study_session_service import StudySessionRegistry

# Import models to register them with SQLModel
from studyflow.models import models  # noqa: F401

# Import API router
from studyflow.api.v1 import api_router

logger = logging.getLogger(__name__)

app = FastAPI(title="StudyFlow API", version="1.0.0")

# Open study sessions, keyed by session_id
app.state.study_sessions = StudySessionRegistry(
    max_age=timedelta(hours=settings.study_session_max_age_hours)
)


def status_code_for(exc: StudyFlowException) -> int:
    """HTTP status code for an application exception."""
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, PersistenceFailureError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, ContentGenerationError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with the non-serializable 'ctx' entries stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


# Add exception handler for validation errors to log details
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with full details for debugging."""
    body = await request.body()
    logger.error(f"Validation error on {request.method} {request.url.path}")
    logger.error(f"Validation errors: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": jsonable_errors(exc),
            "body": body.decode('utf-8', errors='replace') if body else None
        },
    )


# Add exception handler for custom application exceptions
@app.exception_handler(StudyFlowException)
async def studyflow_exception_handler(request: Request, exc: StudyFlowException):
    """Handle custom application exceptions."""
    status_code = status_code_for(exc)
    logger.warning(f"Application exception on {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")

    content = {"detail": str(exc), "type": type(exc).__name__}
    if isinstance(exc, PersistenceFailureError) and exc.session is not None:
        # The session advanced even though the save failed
        content["session_id"] = exc.session.session_id
        content["current_index"] = exc.session.current_index
    return JSONResponse(status_code=status_code, content=content)


# Add global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and return a JSON error."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)

    # In development, show full error details
    if settings.is_development:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": str(exc),
                "type": type(exc).__name__,
                "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal server error occurred. Please try again later.",
            "type": "InternalServerError"
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    init_db()


@app.get("/")
async def root():
    return {
        "message": "StudyFlow API",
        "status": "running",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        }
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
