import pytest

from case_tracking_service.app.config import AppSettings


def test_defaults(monkeypatch):
    for name in ("CASE_API_BASE_URL", "CLIENT_ROLE", "FOREGROUND_DEBOUNCE_SECONDS", "SIGNAL_STORE_BACKEND"):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings(_env_file=None)

    assert settings.CASE_API_BASE_URL == "http://localhost:8080"
    assert settings.DEFAULT_HTTP_TIMEOUT == 10.0
    assert settings.FOREGROUND_DEBOUNCE_SECONDS == 1.0
    assert settings.CROSS_TAB_REFRESH_KEY == "caseRefreshTrigger"
    assert settings.SIGNAL_STORE_BACKEND == "memory"
    assert settings.HIGH_PRIORITY_THRESHOLD == 8
    assert settings.CLIENT_ROLE is None

def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CASE_API_BASE_URL", "https://cases.court.example")
    monkeypatch.setenv("PERIODIC_REFRESH_SECONDS", "5")
    monkeypatch.setenv("CLIENT_ROLE", "CLERK")

    settings = AppSettings(_env_file=None)

    assert settings.CASE_API_BASE_URL == "https://cases.court.example"
    assert settings.PERIODIC_REFRESH_SECONDS == 5.0
    assert settings.CLIENT_ROLE == "CLERK"

def test_invalid_number_is_rejected(monkeypatch):
    monkeypatch.setenv("DEFAULT_HTTP_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        AppSettings(_env_file=None)
