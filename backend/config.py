"""
Runtime configuration for the Quralyst waitlist server.

Values come from the environment, with a local .env file loaded first.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

BACKENDS = ("json", "sqlite", "memory")


def get_env(key: str, default: str = "") -> str:
    return os.getenv(key, default).strip()


@dataclass(frozen=True)
class Settings:
    port: int = 3000
    backend: str = "json"
    waitlist_file: Path = BASE_DIR / "data" / "waitlist_emails.json"
    database_url: str = f"sqlite:///{BASE_DIR / 'data' / 'waitlist.db'}"
    export_dir: Path = BASE_DIR / "exports"
    export_cleanup_seconds: float = 60.0
    fallback_file: Path = Path.home() / ".waitlist_fallback.json"
    log_level: str = "INFO"


def load_settings() -> Settings:
    defaults = Settings()
    backend = get_env("WAITLIST_BACKEND", defaults.backend).lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown waitlist backend: {backend}")

    return Settings(
        port=int(get_env("PORT", str(defaults.port))),
        backend=backend,
        waitlist_file=Path(get_env("WAITLIST_FILE", str(defaults.waitlist_file))),
        database_url=get_env("WAITLIST_DATABASE_URL", defaults.database_url),
        export_dir=Path(get_env("EXPORT_DIR", str(defaults.export_dir))),
        export_cleanup_seconds=float(
            get_env("EXPORT_CLEANUP_SECONDS", str(defaults.export_cleanup_seconds))
        ),
        fallback_file=Path(get_env("FALLBACK_FILE", str(defaults.fallback_file))).expanduser(),
        log_level=get_env("LOG_LEVEL", defaults.log_level).upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    """Settings singleton used by the app and the CLI client"""
    return load_settings()
