from functools import lru_cache

from app.config import ConfigError, Settings, get_settings
from app.estimation.base import EstimationClient
from app.estimation.gemini_provider import GeminiEstimationClient
from app.estimation.openai_provider import OpenAIEstimationClient


def build_estimation_client(settings: Settings) -> EstimationClient:
    """Return the estimation client for the configured provider."""
    if settings.provider == "gemini":
        return GeminiEstimationClient(api_key=settings.api_key, model=settings.model_name)
    if settings.provider == "openai":
        return OpenAIEstimationClient(api_key=settings.api_key, model=settings.model_name)
    raise ConfigError(f"Unknown estimation provider: {settings.provider}")


@lru_cache
def get_estimation_client() -> EstimationClient:
    return build_estimation_client(get_settings())
