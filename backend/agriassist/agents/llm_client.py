"""HTTP calls to the chat-completions and text-generation endpoint shapes."""

import httpx
from loguru import logger
from langchain_core.messages import BaseMessage, convert_to_openai_messages

from agriassist.errors import EmptyResponse, ProviderRequestFailed
from agriassist.services.providers import EndpointShape, ProviderConfig

MAX_TOKENS = 300
TEMPERATURE = 0.7
TOP_P = 0.9
FREQUENCY_PENALTY = 0.1
PRESENCE_PENALTY = 0.1
REPETITION_PENALTY = 1.1

_ROLE_LABELS = {"system": "System", "user": "User", "assistant": "Assistant"}


def chat_payload(model: str, messages: list[BaseMessage]) -> dict:
    return {
        "model": model,
        "messages": convert_to_openai_messages(messages),
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "top_p": TOP_P,
        "frequency_penalty": FREQUENCY_PENALTY,
        "presence_penalty": PRESENCE_PENALTY,
    }


def flatten_prompt(messages: list[BaseMessage]) -> str:
    """Render chat turns as a single completion prompt ending on the assistant cue."""
    lines = []
    for message in convert_to_openai_messages(messages):
        label = _ROLE_LABELS.get(message["role"], message["role"].title())
        lines.append(f"{label}: {message['content']}")
    lines.append("Assistant:")
    return "\n\n".join(lines)


def text_generation_payload(messages: list[BaseMessage]) -> dict:
    return {
        "inputs": flatten_prompt(messages),
        "parameters": {
            "max_new_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
            "repetition_penalty": REPETITION_PENALTY,
            "return_full_text": False,
            "do_sample": True,
        },
    }


def _extract_chat_text(body) -> str:
    try:
        return (body["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError):
        return ""


def _extract_generated_text(body) -> str:
    if isinstance(body, list):
        body = body[0] if body else {}
    if not isinstance(body, dict):
        return ""
    return str(body.get("generated_text") or "").strip()


class LLMClient:
    """Posts prompts to the configured provider and returns the raw generated text."""

    def __init__(self, provider: ProviderConfig, client: httpx.AsyncClient):
        self.provider = provider
        self.client = client

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.provider.api_key}",
        }

    async def complete(self, messages: list[BaseMessage], model: str | None = None) -> str:
        """Return trimmed generated text.

        Raises ProviderRequestFailed on transport errors or non-2xx responses,
        EmptyResponse when the provider answers with no text.
        """
        model = model or self.provider.model
        if self.provider.shape == EndpointShape.CHAT:
            url = f"{self.provider.base_url}/chat/completions"
            payload = chat_payload(model, messages)
        else:
            url = f"{self.provider.base_url}/{model}"
            payload = text_generation_payload(messages)

        logger.debug("[llm] POST {} model={}", url, model)
        try:
            resp = await self.client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ProviderRequestFailed(f"AI API request failed: {type(e).__name__}") from e

        if resp.is_error:
            logger.error("[llm] AI API error: {} {}", resp.status_code, resp.text[:200])
            raise ProviderRequestFailed(f"AI API request failed: {resp.status_code}", resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise ProviderRequestFailed("AI API returned malformed JSON", resp.status_code) from e

        if self.provider.shape == EndpointShape.CHAT:
            text = _extract_chat_text(body)
        else:
            text = _extract_generated_text(body)
        if not text:
            raise EmptyResponse()
        return text
