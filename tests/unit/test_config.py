"""Unit tests for environment-driven settings."""
from src.config import get_settings


class TestSettings:
    def test_typed_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("TOKEN_MAX_AGE_HOURS", "48")
        monkeypatch.setenv("TOKEN_ACADEMIC_DOMAINS_ONLY", "yes")
        monkeypatch.setenv("REGISTRATION_OPEN", "0")
        settings = get_settings()
        assert settings.token_max_age_hours == 48
        assert settings.token_academic_domains_only is True
        assert settings.registration_open is False

    def test_urls_lose_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("SITE_URL", "https://techelons.example.org/")
        monkeypatch.setenv("API_BASE_URL", "https://api.example.org/api/")
        settings = get_settings()
        assert settings.site_url == "https://techelons.example.org"
        assert settings.api_base_url == "https://api.example.org/api"

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TOKEN_MAX_AGE_HOURS", raising=False)
        monkeypatch.delenv("SENDGRID_FROM_EMAIL", raising=False)
        settings = get_settings()
        assert settings.token_max_age_hours == 24
        assert settings.sendgrid_from_email == "websters@shivaji.du.ac.in"
