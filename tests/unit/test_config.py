import pytest
from pydantic import ValidationError

from bizportal.config import ChunkingConfig, PortalSettings


def test_chunking_bounds_are_validated() -> None:
    with pytest.raises(ValidationError):
        ChunkingConfig(max_chars=100, min_chars=200)
    with pytest.raises(ValidationError):
        ChunkingConfig(max_chars=100, overlap_chars=100)
    with pytest.raises(ValidationError):
        ChunkingConfig(max_chars=10)


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("PORTAL_QUIET_HOURS_ENABLED", raising=False)
    settings = PortalSettings(_env_file=None)

    assert settings.quiet_hours().enabled is False
    assert settings.payments().currency == "AED"
    assert settings.payments().default_amount == 100
    assert settings.chunking().max_chars == 700
    assert settings.database_path is None


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PORTAL_QUIET_HOURS_ENABLED", "true")
    monkeypatch.setenv("PORTAL_QUIET_HOURS_START", "21:30")
    monkeypatch.setenv("PORTAL_QUIET_HOURS_TZ", "Europe/London")
    monkeypatch.setenv("PORTAL_BASE_URL", "https://pay.example.com/")
    monkeypatch.setenv("PORTAL_INVOICE_AMOUNT", "250")
    monkeypatch.setenv("PORTAL_CHUNK_MAX_CHARS", "400")

    settings = PortalSettings(_env_file=None)
    quiet = settings.quiet_hours()
    payments = settings.payments()

    assert quiet.enabled is True
    assert quiet.start == "21:30"
    assert quiet.end == "08:00"
    assert quiet.timezone == "Europe/London"
    assert payments.base_url == "https://pay.example.com"
    assert payments.default_amount == 250
    assert settings.chunking().min_chars == 200
