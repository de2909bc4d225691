"""REST API routes for taboo game sessions, cards, and statistics."""

import functools
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from fastapi import APIRouter, Header, HTTPException, Query
from pydantic import BaseModel

from taboo_trainer.config import get_settings
from taboo_trainer.errors import (
    CardInactive,
    CardNotFound,
    InvalidDescription,
    InvalidSessionState,
    SessionNotFound,
    UnsupportedLanguage,
)
from taboo_trainer.game.factory import build_session_manager
from taboo_trainer.game.manager import SessionManager
from taboo_trainer.models.card import Difficulty
from taboo_trainer.models.session import GameSession

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class StartSessionRequest(BaseModel):
    card_id: str
    target_language: str


class SubmitRequest(BaseModel):
    description: str


class CompleteRequest(BaseModel):
    include_example: bool = True


@functools.lru_cache
def get_session_manager() -> SessionManager:
    """Get the application SessionManager singleton."""
    return build_session_manager(get_settings())


def require_user(user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="User must be authenticated")
    return user_id


def validate_session_id(session_id: str) -> str:
    try:
        uuid.UUID(session_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid session ID format")
    return session_id


@contextmanager
def _http_errors() -> Iterator[None]:
    """Translate engine errors into HTTP responses."""
    try:
        yield
    except CardInactive as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (CardNotFound, SessionNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidSessionState as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except (InvalidDescription, UnsupportedLanguage) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _session_payload(session: GameSession) -> dict:
    return session.model_dump(mode="json", exclude={"evaluations", "ai_usage_metadata"})


def _summary_payload(session: GameSession) -> dict:
    return {
        "id": session.id,
        "answer_word": session.answer_word,
        "target_language": session.target_language,
        "status": session.status.value,
        "score": session.score,
        "words_found": len(session.words_found),
        "total_words": len(session.original_key_words),
        "created_at": session.created_at.isoformat(),
        "card": {
            "category": session.card_category,
            "difficulty": session.card_difficulty,
        },
    }


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/taboo/cards")
async def get_cards(
    count: int = Query(default=1, ge=1),
    category: str | None = None,
    difficulty: Difficulty | None = None,
) -> dict:
    """Random active cards, capped at the configured maximum."""
    manager = get_session_manager()
    count = min(count, get_settings().max_cards_per_request)
    cards = manager.cards.random_cards(count, category, difficulty)
    if not cards:
        raise HTTPException(status_code=404, detail="No taboo cards found matching the criteria")
    return {
        "cards": [c.model_dump(mode="json") for c in cards],
        "count": len(cards),
    }


@router.get("/taboo/categories")
async def get_categories() -> dict:
    manager = get_session_manager()
    return {"categories": manager.cards.categories()}


@router.post("/taboo/sessions/start")
async def start_session(
    body: StartSessionRequest,
    x_user_id: str | None = Header(default=None),
) -> dict:
    """Start a new game session."""
    user_id = require_user(x_user_id)
    manager = get_session_manager()
    with _http_errors():
        session = await manager.start_session(body.card_id, body.target_language, user_id)
    return {"session": _session_payload(session)}


@router.post("/taboo/sessions/{session_id}/submit")
async def submit_description(
    session_id: str,
    body: SubmitRequest,
    x_user_id: str | None = Header(default=None),
) -> dict:
    """Evaluate a description and return the accumulated progress."""
    user_id = require_user(x_user_id)
    session_id = validate_session_id(session_id)
    manager = get_session_manager()
    with _http_errors():
        outcome = await manager.submit_description(session_id, body.description, user_id)
    session = outcome.session
    return {
        "session_id": session.id,
        "status": session.status.value,
        "quality": outcome.quality,
        "evaluation": outcome.evaluation.model_dump(mode="json", exclude={"usage"}),
        "newly_found_words": outcome.newly_found_words,
        "score": outcome.score.model_dump(mode="json"),
        "words_found": session.words_found,
        "words_missed": session.words_missed,
        "warnings": [w.value for w in session.warnings],
    }


@router.post("/taboo/sessions/{session_id}/complete")
async def complete_session(
    session_id: str,
    body: CompleteRequest | None = None,
    x_user_id: str | None = Header(default=None),
) -> dict:
    """Score and close a game session."""
    user_id = require_user(x_user_id)
    session_id = validate_session_id(session_id)
    include_example = body.include_example if body else True
    manager = get_session_manager()
    with _http_errors():
        session = await manager.complete_session(session_id, include_example, user_id)
    return {"session": _session_payload(session)}


@router.post("/taboo/sessions/{session_id}/abandon")
async def abandon_session(
    session_id: str,
    x_user_id: str | None = Header(default=None),
) -> dict:
    user_id = require_user(x_user_id)
    session_id = validate_session_id(session_id)
    manager = get_session_manager()
    with _http_errors():
        session = await manager.abandon_session(session_id, user_id)
    return {"session": _session_payload(session)}


@router.get("/taboo/sessions/{session_id}")
async def get_session(
    session_id: str,
    x_user_id: str | None = Header(default=None),
) -> dict:
    """Full details of one of the user's sessions."""
    user_id = require_user(x_user_id)
    session_id = validate_session_id(session_id)
    manager = get_session_manager()
    with _http_errors():
        session = manager.get_session(session_id, user_id)
    return {"session": _session_payload(session)}


@router.get("/taboo/sessions")
async def list_sessions(
    language: str | None = None,
    limit: int = Query(default=10, ge=1),
    x_user_id: str | None = Header(default=None),
) -> dict:
    """The user's most recent sessions."""
    user_id = require_user(x_user_id)
    manager = get_session_manager()
    limit = min(limit, get_settings().history_limit_max)
    with _http_errors():
        sessions = manager.user_history(user_id, language, limit)
    return {"sessions": [_summary_payload(s) for s in sessions]}


@router.get("/taboo/stats")
async def get_stats(
    language: str | None = None,
    x_user_id: str | None = Header(default=None),
) -> dict:
    user_id = require_user(x_user_id)
    manager = get_session_manager()
    with _http_errors():
        stats = manager.user_stats(user_id, language)
    return {"stats": stats}
