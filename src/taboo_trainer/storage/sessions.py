"""Game session persistence (JSON file per session + atomic write)."""

import json
import os
import tempfile
import uuid
from pathlib import Path

import structlog

from taboo_trainer.models.session import GameSession, SessionStatus

logger = structlog.get_logger()


class SessionStore:
    """Keeps sessions in memory and mirrors them to ``sessions_dir``.

    Args:
        sessions_dir: Directory for ``<session_id>.json`` files. None keeps
            sessions in memory only.
    """

    def __init__(self, sessions_dir: Path | None = None):
        self.sessions_dir = sessions_dir
        self._sessions: dict[str, GameSession] = {}
        if sessions_dir is not None:
            self._load_existing()

    def _load_existing(self) -> None:
        for path in sorted(self.sessions_dir.glob("*.json")):
            try:
                session = GameSession.model_validate_json(path.read_text(encoding="utf-8"))
            except ValueError:
                logger.warning("session_parse_error", path=str(path))
                continue
            self._sessions[session.id] = session

    def _path_for(self, session_id: str) -> Path | None:
        if self.sessions_dir is None:
            return None
        try:
            uuid.UUID(session_id)
        except ValueError:
            return None
        return self.sessions_dir / f"{session_id}.json"

    def save(self, session: GameSession) -> None:
        self._sessions[session.id] = session
        path = self._path_for(session.id)
        if path is None:
            return
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            tmp.write(session.model_dump_json(indent=2))
        os.replace(tmp.name, path)

    def get(self, session_id: str) -> GameSession | None:
        return self._sessions.get(session_id)

    def all(self) -> list[GameSession]:
        return list(self._sessions.values())

    def open_sessions(self) -> list[GameSession]:
        return [s for s in self._sessions.values() if s.status.is_open]

    def for_user(
        self, user_id: str, target_language: str | None = None
    ) -> list[GameSession]:
        return [
            s for s in self._sessions.values()
            if s.user_id == user_id
            and (target_language is None or s.target_language == target_language)
        ]

    def user_history(
        self, user_id: str, target_language: str | None = None, limit: int = 10
    ) -> list[GameSession]:
        """Most recent sessions of a user, newest first."""
        sessions = sorted(
            self.for_user(user_id, target_language),
            key=lambda s: s.created_at,
            reverse=True,
        )
        return sessions[:max(limit, 0)]

    def user_stats(self, user_id: str, target_language: str | None = None) -> dict:
        """Aggregate statistics over a user's completed sessions."""
        completed = [
            s for s in self.for_user(user_id, target_language)
            if s.status == SessionStatus.COMPLETED
        ]
        if not completed:
            return {
                "total_games": 0,
                "average_score": 0,
                "best_score": 0,
                "total_words_found": 0,
                "average_words_found": 0.0,
                "languages": [],
            }

        total_games = len(completed)
        scores = [s.score or 0 for s in completed]
        words_found = [len(s.words_found) for s in completed]
        return {
            "total_games": total_games,
            "average_score": int(sum(scores) / total_games + 0.5),
            "best_score": max(scores),
            "total_words_found": sum(words_found),
            "average_words_found": round(sum(words_found) / total_games, 1),
            "languages": sorted({s.target_language for s in completed}),
        }
