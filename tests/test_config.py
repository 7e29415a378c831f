from pathlib import Path

import pytest

from config import Settings, load_settings


def test_defaults(monkeypatch):
    for key in ("PORT", "WAITLIST_BACKEND", "EXPORT_CLEANUP_SECONDS", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)

    settings = load_settings()
    assert settings.port == 3000
    assert settings.backend == "json"
    assert settings.export_cleanup_seconds == 60.0


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("WAITLIST_BACKEND", "SQLite")
    monkeypatch.setenv("WAITLIST_FILE", str(tmp_path / "w.json"))
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()
    assert settings == Settings(
        port=8080,
        backend="sqlite",
        waitlist_file=Path(tmp_path / "w.json"),
        database_url=settings.database_url,
        export_dir=settings.export_dir,
        export_cleanup_seconds=settings.export_cleanup_seconds,
        fallback_file=settings.fallback_file,
        log_level="DEBUG",
    )


def test_unknown_backend(monkeypatch):
    monkeypatch.setenv("WAITLIST_BACKEND", "redis")
    with pytest.raises(ValueError, match="Unknown waitlist backend"):
        load_settings()
