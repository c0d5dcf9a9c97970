import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

PLACEHOLDER_API_KEY = "PLACEHOLDER_API_KEY"
SUPPORTED_PROVIDERS = ("gemini", "openai")


class ConfigError(ValueError):
    """Raised at startup when the environment cannot run the service."""


@dataclass(frozen=True)
class Settings:
    provider: str
    api_key: str
    gemini_model: str = "gemini-2.5-flash"
    openai_model: str = "gpt-4o"
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)
    estimate_rate_limit: str = "10/minute"
    upload_rate_limit: str = "30/minute"
    rate_limit_enabled: bool = True
    session_ttl_seconds: int = 3600
    max_sessions: int = 500
    sentry_dsn: str | None = None
    log_level: str = "INFO"
    debug: bool = False

    @property
    def model_name(self) -> str:
        return self.gemini_model if self.provider == "gemini" else self.openai_model


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _read_api_key(provider: str) -> str:
    if provider == "gemini":
        key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        hint = "GEMINI_API_KEY"
    else:
        key = os.getenv("OPENAI_API_KEY")
        hint = "OPENAI_API_KEY"

    if not key or key.strip() == PLACEHOLDER_API_KEY:
        raise ConfigError(f"Please set a valid {hint} in your environment or .env file")
    return key.strip()


def load_settings() -> Settings:
    """Build settings from the process environment.

    A missing or placeholder API key is fatal, so this raises instead of
    deferring the failure to the first estimate.
    """
    provider = os.getenv("ESTIMATION_PROVIDER", "gemini").strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigError(f"Unknown estimation provider: {provider}")

    origins = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

    try:
        ttl = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
        max_sessions = int(os.getenv("MAX_SESSIONS", "500"))
    except ValueError:
        raise ConfigError("SESSION_TTL_SECONDS and MAX_SESSIONS must be integers")
    if max_sessions < 1:
        raise ConfigError("MAX_SESSIONS must be at least 1")

    return Settings(
        provider=provider,
        api_key=_read_api_key(provider),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        cors_origins=tuple(o.strip() for o in origins if o.strip()),
        estimate_rate_limit=os.getenv("ESTIMATE_RATE_LIMIT", "10/minute"),
        upload_rate_limit=os.getenv("UPLOAD_RATE_LIMIT", "30/minute"),
        rate_limit_enabled=_env_flag("RATE_LIMIT_ENABLED", True),
        session_ttl_seconds=ttl,
        max_sessions=max_sessions,
        sentry_dsn=os.getenv("SENTRY_DSN") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        debug=_env_flag("DEBUG", False),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
