import asyncio

import httpx
import pytest

from agriassist.config import Settings

SUPABASE_URL = "https://abcdefgh.supabase.co"
ANON_KEY = "anon-key-for-tests-0123456789"
WEATHER_URL = "https://weather.test/v1/getHourlyByCoords"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's .env and environment."""
    values = {
        "supabase_url": "",
        "supabase_anon_key": "",
        "database_url": "",
        "openai_api_key": "",
        "ai_api_key": "",
        "ai_base_url": "",
        "ai_provider": "",
        "ai_fallback_model": "",
        "weather_api_url": WEATHER_URL,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def recorder():
    """A MockTransport handler that records requests and replays queued responses."""

    class Recorder:
        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.responses: list = []

        def queue(self, *responses):
            self.responses.extend(responses)

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if not self.responses:
                return httpx.Response(500, json={"message": "no response queued"})
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

    return Recorder()
