"""Explicit AI provider table, resolved once from settings at startup."""

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from agriassist.availability import MIN_AI_KEY_LENGTH, MIN_ALT_KEY_LENGTH, credentials_usable, is_placeholder
from agriassist.config import Settings


class Provider(str, Enum):
    OPENAI = "openai"
    TOGETHER = "together"
    GROQ = "groq"
    HUGGINGFACE = "huggingface"
    CUSTOM = "custom"


class EndpointShape(str, Enum):
    # POST {base}/chat/completions -> {choices: [{message: {content}}]}
    CHAT = "chat"
    # POST {base}/{model} -> [{generated_text}]
    TEXT_GENERATION = "text_generation"


@dataclass(frozen=True)
class ProviderSpec:
    model: str
    shape: EndpointShape
    base_url: str
    label: str
    fallback_model: str | None = None


PROVIDERS: dict[Provider, ProviderSpec] = {
    Provider.OPENAI: ProviderSpec(
        model="gpt-3.5-turbo",
        shape=EndpointShape.CHAT,
        base_url="https://api.openai.com/v1",
        label="OpenAI GPT-3.5",
    ),
    Provider.TOGETHER: ProviderSpec(
        model="meta-llama/Llama-2-7b-chat-hf",
        shape=EndpointShape.CHAT,
        base_url="https://api.together.xyz/v1",
        label="Together AI (Llama-2)",
    ),
    Provider.GROQ: ProviderSpec(
        model="llama2-70b-4096",
        shape=EndpointShape.CHAT,
        base_url="https://api.groq.com/openai/v1",
        label="Groq (Llama-2)",
    ),
    Provider.HUGGINGFACE: ProviderSpec(
        model="mistralai/Mistral-7B-Instruct-v0.2",
        shape=EndpointShape.TEXT_GENERATION,
        base_url="https://api-inference.huggingface.co/models",
        label="Hugging Face (Mistral-7B)",
        fallback_model="google/flan-t5-large",
    ),
    Provider.CUSTOM: ProviderSpec(
        model="gpt-3.5-turbo",
        shape=EndpointShape.CHAT,
        base_url="",
        label="Custom Provider",
    ),
}

# Host fragment -> provider, consulted once when AI_PROVIDER is not set
_HOST_HINTS = (
    ("openai.com", Provider.OPENAI),
    ("together.xyz", Provider.TOGETHER),
    ("groq.com", Provider.GROQ),
    ("huggingface.co", Provider.HUGGINGFACE),
)


@dataclass(frozen=True)
class ProviderConfig:
    provider: Provider
    api_key: str
    base_url: str
    model: str
    shape: EndpointShape
    fallback_model: str | None = None

    @property
    def label(self) -> str:
        return PROVIDERS[self.provider].label

    def key_status(self) -> str:
        return key_status(self.api_key, self.provider)


def key_status(api_key: str | None, provider: Provider | None = None) -> str:
    if not api_key:
        return "Not configured"
    if is_placeholder(api_key):
        return "Placeholder value"
    min_length = MIN_AI_KEY_LENGTH if provider in (None, Provider.OPENAI) else MIN_ALT_KEY_LENGTH
    if len(api_key) < min_length:
        return "Invalid key"
    kind = "OpenAI" if provider == Provider.OPENAI else "Alternative Provider"
    return f"Configured ({kind})"


def provider_from_url(base_url: str) -> Provider:
    for fragment, provider in _HOST_HINTS:
        if fragment in base_url:
            return provider
    return Provider.CUSTOM


def _build(provider: Provider, api_key: str, base_url: str, fallback_override: str) -> ProviderConfig:
    spec = PROVIDERS[provider]
    return ProviderConfig(
        provider=provider,
        api_key=api_key,
        base_url=(base_url or spec.base_url).rstrip("/"),
        model=spec.model,
        shape=spec.shape,
        fallback_model=fallback_override or spec.fallback_model,
    )


def resolve_provider(settings: Settings) -> ProviderConfig | None:
    """Pick the provider the keys in ``settings`` allow, or None if no key is usable.

    An OpenAI key wins. Otherwise AI_API_KEY is used with AI_PROVIDER, or the
    provider implied by AI_BASE_URL, defaulting to Together AI.
    """
    if credentials_usable({"api_key": settings.openai_api_key}, min_length=MIN_AI_KEY_LENGTH):
        config = _build(Provider.OPENAI, settings.openai_api_key, "", settings.ai_fallback_model)
    elif credentials_usable({"api_key": settings.ai_api_key}, min_length=MIN_ALT_KEY_LENGTH):
        if settings.ai_provider:
            try:
                provider = Provider(settings.ai_provider.strip().lower())
            except ValueError:
                logger.error("[providers] Unknown AI_PROVIDER {!r}, AI service disabled", settings.ai_provider)
                return None
        elif settings.ai_base_url:
            provider = provider_from_url(settings.ai_base_url)
        else:
            provider = Provider.TOGETHER
        if provider == Provider.CUSTOM and not settings.ai_base_url:
            logger.error("[providers] AI_PROVIDER=custom requires AI_BASE_URL, AI service disabled")
            return None
        config = _build(provider, settings.ai_api_key, settings.ai_base_url, settings.ai_fallback_model)
    else:
        return None

    logger.info("[providers] AI service enabled: {} ({})", config.label, config.model)
    return config
