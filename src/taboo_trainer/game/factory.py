"""Wires a SessionManager from application settings."""

from datetime import timedelta

import structlog

from taboo_trainer.ai.openai_client import OpenAIGameplayClient
from taboo_trainer.config import Settings, load_languages
from taboo_trainer.game.evaluator import Evaluator
from taboo_trainer.game.manager import SessionManager
from taboo_trainer.game.translator import Translator
from taboo_trainer.storage.ai_usage import JsonlUsageSink
from taboo_trainer.storage.cards import CardRepository
from taboo_trainer.storage.sessions import SessionStore

logger = structlog.get_logger()


def build_session_manager(settings: Settings) -> SessionManager:
    """Create the production SessionManager.

    Without an OpenAI API key every AI capability is left unset, so the game
    runs entirely on its deterministic fallbacks.
    """
    client = None
    if settings.openai_api_key:
        client = OpenAIGameplayClient(
            api_key=settings.openai_api_key,
            translation_model=settings.translation_model,
            evaluation_model=settings.evaluation_model,
            example_model=settings.example_model,
            timeout=settings.ai_timeout_seconds,
        )
    else:
        logger.warning("ai_capabilities_disabled", reason="missing_openai_api_key")

    session_timeout = None
    if settings.session_timeout_minutes is not None:
        session_timeout = timedelta(minutes=settings.session_timeout_minutes)

    return SessionManager(
        cards=CardRepository.from_yaml(settings.cards_path),
        store=SessionStore(settings.sessions_dir),
        translator=Translator(client, timeout_seconds=settings.ai_timeout_seconds),
        evaluator=Evaluator(client, timeout_seconds=settings.ai_timeout_seconds),
        languages=load_languages(settings.languages_path),
        example_capability=client,
        usage_sink=JsonlUsageSink(settings.usage_log_path),
        min_description_length=settings.min_description_length,
        session_timeout=session_timeout,
        ai_timeout_seconds=settings.ai_timeout_seconds,
    )
