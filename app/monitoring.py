import sentry_sdk

from app.config import Settings

# Uploaded photos and postal codes never leave the process in error reports
SCRUBBED_REQUEST_KEYS = ("data", "cookies", "query_string")


def scrub_event(event: dict, hint: dict | None = None) -> dict:
    request = event.get("request")
    if request:
        for key in SCRUBBED_REQUEST_KEYS:
            request.pop(key, None)
    return event


def _disabled_integrations(provider: str) -> list:
    # The agents integration only has runs to trace when the OpenAI provider is active
    if provider == "openai":
        return []
    try:
        from sentry_sdk.integrations.openai_agents import OpenAIAgentsIntegration
    except ImportError:
        return []
    return [OpenAIAgentsIntegration]


def setup_sentry(settings: Settings) -> bool:
    """Start error reporting when a DSN is configured.

    Returns whether Sentry was initialised.
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=0.1,
        send_default_pii=False,
        before_send=scrub_event,
        disabled_integrations=_disabled_integrations(settings.provider),
    )
    sentry_sdk.set_tag("estimation_provider", settings.provider)
    sentry_sdk.set_tag("estimation_model", settings.model_name)
    return True
