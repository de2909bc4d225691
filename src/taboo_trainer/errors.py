"""Typed failures raised by the taboo game engine.

AI capability failures never show up here: the translator and evaluator
recover from them locally and flag the result instead.
"""


class TabooError(Exception):
    """Base class for all game engine errors."""


class CardNotFound(TabooError):
    def __init__(self, card_id: str, message: str | None = None):
        self.card_id = card_id
        super().__init__(message or f"Taboo card not found: {card_id}")


class CardInactive(CardNotFound):
    """The card exists but is not currently playable."""

    def __init__(self, card_id: str):
        super().__init__(card_id, f"Taboo card is not currently active: {card_id}")


class SessionNotFound(TabooError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Game session not found: {session_id}")


class InvalidSessionState(TabooError):
    """An operation was attempted from a state that does not allow it."""

    def __init__(self, session_id: str, status: str, operation: str):
        self.session_id = session_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} session {session_id} in status '{status}'"
        )


class InvalidDescription(TabooError):
    pass


class UnsupportedLanguage(TabooError):
    def __init__(self, language: str):
        self.language = language
        super().__init__(f"Unsupported target language: {language}")


class ScoringInputInvalid(TabooError):
    pass


class TranslationMismatch(TabooError):
    """The translator broke the one-to-one word correspondence."""
