"""Tests for settings and language configuration."""

import pytest

from taboo_trainer.config import (
    DEFAULT_LANGUAGES,
    Settings,
    load_languages,
    resolve_language,
)
from taboo_trainer.errors import UnsupportedLanguage


class TestLoadLanguages:
    def test_defaults_when_file_missing(self, tmp_path):
        languages = load_languages(tmp_path / "missing.yaml")
        assert set(languages) == set(DEFAULT_LANGUAGES)
        assert languages["spanish"].iso_code == "es"
        assert languages["spanish"].key == "spanish"

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "languages.yaml"
        path.write_text(
            "languages:\n"
            "  dutch:\n"
            "    name: Dutch\n"
            "    native_name: Nederlands\n"
            "    iso_code: nl\n",
            encoding="utf-8",
        )
        languages = load_languages(path)
        assert list(languages) == ["dutch"]
        assert languages["dutch"].native_name == "Nederlands"

    def test_bundled_file(self):
        languages = load_languages()
        assert "spanish" in languages
        assert languages["french"].iso_code == "fr"


class TestResolveLanguage:
    @pytest.mark.parametrize("value", ["spanish", "Spanish", " es ", "ES"])
    def test_accepts_key_or_iso_code(self, languages, value):
        assert resolve_language(value, languages).key == "spanish"

    def test_unknown_language(self, languages):
        with pytest.raises(UnsupportedLanguage):
            resolve_language("klingon", languages)


class TestSettings:
    def test_init_overrides(self, tmp_path):
        settings = Settings(
            openai_api_key=None,
            min_description_length=3,
            project_root=tmp_path,
        )
        assert settings.openai_api_key is None
        assert settings.min_description_length == 3
        assert settings.cards_path == tmp_path / "config" / "cards.yaml"
        assert settings.usage_log_path == tmp_path / "data" / "ai_usage.jsonl"
        assert settings.sessions_dir.is_dir()

    def test_yaml_values_loaded(self, monkeypatch):
        monkeypatch.delenv("MAX_CARDS_PER_REQUEST", raising=False)
        settings = Settings()
        assert settings.max_cards_per_request == 10
        assert settings.ai_timeout_seconds == 20

    def test_expiry_sweep_interval(self, tmp_path):
        settings = Settings(project_root=tmp_path, expiry_sweep_seconds=5)
        assert settings.expiry_sweep_seconds == 5
