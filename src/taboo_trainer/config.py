"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from taboo_trainer.errors import UnsupportedLanguage
from taboo_trainer.models.language import Language


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'openai' in data:
            openai_cfg = data['openai']
            flattened['translation_model'] = openai_cfg.get('translation_model')
            flattened['evaluation_model'] = openai_cfg.get('evaluation_model')
            flattened['example_model'] = openai_cfg.get('example_model')
            flattened['ai_timeout_seconds'] = openai_cfg.get('timeout_seconds')
        if 'game' in data:
            game = data['game']
            flattened['session_timeout_minutes'] = game.get('session_timeout_minutes')
            flattened['expiry_sweep_seconds'] = game.get('expiry_sweep_seconds')
            flattened['min_description_length'] = game.get('min_description_length')
            flattened['max_cards_per_request'] = game.get('max_cards_per_request')
            flattened['history_limit_max'] = game.get('history_limit_max')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (optional: None disables every AI capability)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    translation_model: str = Field(default="gpt-4o-mini")
    evaluation_model: str = Field(default="gpt-4o-mini")
    example_model: str = Field(default="gpt-4o-mini")
    ai_timeout_seconds: float = Field(default=20.0, gt=0)

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Game
    session_timeout_minutes: float | None = Field(default=60.0)
    expiry_sweep_seconds: float = Field(default=60.0, gt=0)
    min_description_length: int = Field(default=5, ge=1)
    max_cards_per_request: int = Field(default=10, ge=1)
    history_limit_max: int = Field(default=50, ge=1)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def sessions_dir(self) -> Path:
        d = self.project_root / "data" / "sessions"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def usage_log_path(self) -> Path:
        d = self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d / "ai_usage.jsonl"

    @property
    def cards_path(self) -> Path:
        return self.project_root / "config" / "cards.yaml"

    @property
    def languages_path(self) -> Path:
        return self.project_root / "config" / "languages.yaml"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


DEFAULT_LANGUAGES: dict[str, dict[str, str]] = {
    "spanish": {"name": "Spanish", "native_name": "español", "iso_code": "es"},
    "french": {"name": "French", "native_name": "français", "iso_code": "fr"},
    "german": {"name": "German", "native_name": "Deutsch", "iso_code": "de"},
    "italian": {"name": "Italian", "native_name": "italiano", "iso_code": "it"},
    "portuguese": {"name": "Portuguese", "native_name": "português", "iso_code": "pt"},
    "english": {"name": "English", "native_name": "English", "iso_code": "en"},
}


def load_languages(path: Path | None = None) -> dict[str, Language]:
    """Load supported target languages, keyed by language name.

    Falls back to the built-in table when the YAML file is missing.
    """
    languages_path = path or _find_project_root() / "config" / "languages.yaml"
    if languages_path.exists():
        with open(languages_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        raw = data.get('languages', {})
    else:
        raw = DEFAULT_LANGUAGES
    return {key: Language(key=key, **value) for key, value in raw.items()}


def resolve_language(language: str, languages: dict[str, Language]) -> Language:
    """Look up a language by key ("spanish") or ISO code ("es")."""
    needle = language.strip().lower()
    if needle in languages:
        return languages[needle]
    for candidate in languages.values():
        if candidate.iso_code == needle:
            return candidate
    raise UnsupportedLanguage(language)
