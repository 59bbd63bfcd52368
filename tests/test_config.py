"""Tests for environment-driven settings."""

from __future__ import annotations

from polar_health.config import Settings


def test_redirect_uri_derived_from_public_url(monkeypatch):
    monkeypatch.setenv("PUBLIC_URL", "https://health.example.com/")
    monkeypatch.delenv("REDIRECT_URI", raising=False)

    settings = Settings(_env_file=None)

    assert settings.redirect_uri == "https://health.example.com/auth/polar/callback"


def test_secrets_come_from_environment(monkeypatch):
    monkeypatch.setenv("POLAR_CLIENT_ID", "env-id")
    monkeypatch.setenv("POLAR_CLIENT_SECRET", "env-secret")

    settings = Settings(_env_file=None)

    assert settings.POLAR_CLIENT_ID == "env-id"
    assert settings.is_configured


def test_missing_secrets_are_reported(monkeypatch):
    monkeypatch.delenv("POLAR_CLIENT_ID", raising=False)
    monkeypatch.delenv("POLAR_CLIENT_SECRET", raising=False)

    assert not Settings(_env_file=None).is_configured


def test_allowed_origins_split(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:5173, https://app.example.com")

    settings = Settings(_env_file=None)

    assert settings.allowed_origins == ["http://localhost:5173", "https://app.example.com"]


def test_settings_read_dotenv_file(tmp_path, monkeypatch):
    monkeypatch.delenv("POLAR_CLIENT_ID", raising=False)
    monkeypatch.delenv("POLAR_CLIENT_SECRET", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("POLAR_CLIENT_ID=file-id\nPOLAR_CLIENT_SECRET=file-secret\nUNRELATED=ignored\n")

    settings = Settings(_env_file=env_file)

    assert settings.POLAR_CLIENT_ID == "file-id"
    assert settings.POLAR_CLIENT_SECRET == "file-secret"
