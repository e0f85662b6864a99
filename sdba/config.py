import os
from dotenv import load_dotenv

# Load environment variables from a .env file if present so that running the
# application locally works without manually exporting variables.
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise RuntimeError(f"{name} must be at least 1, got {value}")
    return value


APP_ENV: str = os.getenv("APP_ENV", "development")
IS_PRODUCTION: bool = APP_ENV == "production"

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

DB_URL = os.getenv("DB_URL")

SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")

CSRF_SECRET = os.getenv("CSRF_SECRET")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

RATE_LIMIT_ENABLED: bool = _env_flag("RATE_LIMIT_ENABLED", True)

EXPORT_PAGE_SIZE: int = _positive_int("EXPORT_PAGE_SIZE", 1000)
