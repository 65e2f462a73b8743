import os
from pathlib import Path
from typing import Optional


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    for candidate in (current.parents[2] / ".env", Path.cwd() / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


def _default_database_url() -> str:
    backend_root = Path(__file__).resolve().parents[2]
    return f"sqlite:///{(backend_root / 'gameshelf.db').as_posix()}"


def _normalize_cors(origins: str) -> list[str]:
    items: list[str] = []
    for raw in origins.split(","):
        value = raw.strip()
        if value and value not in items:
            items.append(value)
    return items


DATABASE_URL = os.getenv("DATABASE_URL", _default_database_url())
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))

CORS_ORIGINS = _normalize_cors(os.getenv("CORS_ORIGINS", "*"))

IGDB_API_URL = os.getenv("IGDB_API_URL", "https://api.igdb.com/v4").rstrip("/")
IGDB_CLIENT_ID = os.getenv("IGDB_CLIENT_ID", "")
IGDB_ACCESS_TOKEN = os.getenv("IGDB_ACCESS_TOKEN", "")
# None means provider calls wait indefinitely.
IGDB_REQUEST_TIMEOUT_SECONDS = _env_optional_float("IGDB_REQUEST_TIMEOUT_SECONDS")

SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))
SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "0"))

GAMES_AVAILABLE_BY_DEFAULT = _env_bool("GAMES_AVAILABLE_BY_DEFAULT")

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "").strip()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "").strip() or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
