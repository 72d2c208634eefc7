"""Decide once, at startup, whether Supabase and the AI provider are usable."""

from typing import Iterable

from loguru import logger

from agriassist.config import Settings
from agriassist.models.schemas import Availability

SUPABASE_HOST = "supabase.co"
MIN_AI_KEY_LENGTH = 10
# AI_API_KEY must be strictly longer than an OpenAI key's minimum
MIN_ALT_KEY_LENGTH = 11

PLACEHOLDERS = frozenset({
    "your_supabase_url_here",
    "your_supabase_anon_key_here",
    "your_openai_api_key_here",
    "your_ai_api_key_here",
})


def is_placeholder(value: str) -> bool:
    return value in PLACEHOLDERS or ("your_" in value and "_here" in value)


def credentials_usable(
    values: dict[str, str | None],
    placeholders: Iterable[str] = PLACEHOLDERS,
    url_host: str | None = None,
    min_length: int | None = None,
) -> bool:
    """True only if every credential is present, non-empty and not a placeholder.

    Keys named ``url`` (or ending in ``_url``) must also contain ``url_host``
    when one is given. ``min_length`` applies to the non-URL values.
    """
    placeholders = frozenset(placeholders)
    for name, value in values.items():
        if not value or not value.strip():
            return False
        if value in placeholders or is_placeholder(value):
            return False
        is_url = name == "url" or name.endswith("_url")
        if is_url and url_host and url_host not in value:
            return False
        if not is_url and min_length is not None and len(value) < min_length:
            return False
    return True


def supabase_configured(settings: Settings) -> bool:
    return credentials_usable(
        {"url": settings.supabase_url, "anon_key": settings.supabase_anon_key},
        url_host=SUPABASE_HOST,
    )


def ai_configured(settings: Settings) -> bool:
    return (
        credentials_usable({"api_key": settings.openai_api_key}, min_length=MIN_AI_KEY_LENGTH)
        or credentials_usable({"api_key": settings.ai_api_key}, min_length=MIN_ALT_KEY_LENGTH)
    )


def resolve_availability(settings: Settings) -> Availability:
    """Compute both flags and log the mode once. Not re-checked afterwards."""
    availability = Availability(
        database=supabase_configured(settings),
        ai=ai_configured(settings),
    )
    if availability.database:
        logger.info("[availability] Supabase configured - live database mode")
    else:
        logger.warning(
            "[availability] Supabase not configured - offline mode. "
            "Add SUPABASE_URL and SUPABASE_ANON_KEY to .env to enable database features."
        )
    if availability.ai:
        logger.info("[availability] AI provider credentials found")
    else:
        logger.warning("[availability] AI service disabled: no valid API key found")
    return availability
