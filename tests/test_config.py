"""
Tests for environment-driven settings.
"""
import pytest
from pydantic import ValidationError

from sigplace.config import Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run without a developer .env file and with no service variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("ENVIRONMENT", "DEBUG", "ALLOWED_ORIGINS", "DEFAULT_STAMP_WIDTH",
                 "DEFAULT_STAMP_HEIGHT", "DIMENSION_TOLERANCE", "PAGE_CACHE_SIZE", "MAX_PDF_BYTES"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.is_production is False
        assert settings.allowed_origins == []
        assert (settings.default_stamp_width, settings.default_stamp_height) == (150, 75)
        assert settings.dimension_tolerance == 1.0
        assert settings.page_cache_size == 32

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DIMENSION_TOLERANCE", "2.5")
        monkeypatch.setenv("PAGE_CACHE_SIZE", "4")

        settings = Settings()
        assert settings.is_production is True
        assert settings.dimension_tolerance == 2.5
        assert settings.page_cache_size == 4

    @pytest.mark.parametrize("raw", [
        '["https://a.example", "https://b.example"]',
        "https://a.example,https://b.example",
        "https://a.example; https://b.example",
    ])
    def test_allowed_origins_formats(self, monkeypatch, raw):
        monkeypatch.setenv("ALLOWED_ORIGINS", raw)
        assert Settings().allowed_origins == ["https://a.example", "https://b.example"]

    def test_invalid_stamp_size_rejected(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_STAMP_WIDTH", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_cache_size_rejected(self, monkeypatch):
        monkeypatch.setenv("PAGE_CACHE_SIZE", "0")
        with pytest.raises(ValidationError):
            Settings()
