from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    db_path: Path
    host: str = "127.0.0.1"
    port: int = 8000
    token_ttl_hours: int = 168
    cors_origins: Tuple[str, ...] = ()
    log_level: str = "INFO"
    admin_username: str = "admin"
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv()

    db_raw = os.getenv("DB_PATH", "data/taskhub.db").strip()
    port = _int_env("PORT", 8000)
    ttl = _int_env("TOKEN_TTL_HOURS", 168)
    origins = tuple(o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip())

    if not db_raw:
        raise RuntimeError("DB_PATH must not be empty")
    if ttl <= 0:
        raise RuntimeError("TOKEN_TTL_HOURS must be positive")

    return Settings(
        db_path=Path(db_raw),
        host=os.getenv("HOST", "127.0.0.1").strip(),
        port=port,
        token_ttl_hours=ttl,
        cors_origins=origins,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        admin_username=os.getenv("ADMIN_USERNAME", "admin").strip(),
        admin_email=os.getenv("ADMIN_EMAIL", "").strip() or None,
        admin_password=os.getenv("ADMIN_PASSWORD", "").strip() or None,
    )
