from dataclasses import dataclass

import httpx
from loguru import logger

from agriassist.agents.farm_advisor import FarmAdvisor
from agriassist.availability import resolve_availability
from agriassist.config import Settings
from agriassist.models.schemas import Availability
from agriassist.services.auth import AuthBridge
from agriassist.services.history import ChatHistory
from agriassist.services.providers import ProviderConfig, resolve_provider
from agriassist.services.weather_board import WeatherBoard
from agriassist.tools._supabase import SupabaseClient
from agriassist.tools.alerts import load_weather_alerts
from agriassist.tools.weather import fetch_weather_data


@dataclass
class Services:
    """Everything the HTTP layer needs, built once per application."""
    settings: Settings
    client: httpx.AsyncClient
    availability: Availability
    provider: ProviderConfig | None
    supabase: SupabaseClient | None
    advisor: FarmAdvisor
    history: ChatHistory
    board: WeatherBoard | None = None

    async def fetch_weather(self, lat: float, lng: float):
        return await fetch_weather_data(self.client, lat, lng, url=self.settings.weather_api_url)

    async def load_alerts(self):
        return await load_weather_alerts(self.supabase, self.availability.database)

    def auth_bridge(self) -> AuthBridge:
        """A fresh, signed-out bridge. Sessions belong to callers, not the process."""
        bridge = AuthBridge(self.supabase, self.availability.database)
        bridge.start()
        return bridge


def build_services(settings: Settings, client: httpx.AsyncClient) -> Services:
    availability = resolve_availability(settings)
    provider = resolve_provider(settings) if availability.ai else None
    if availability.ai and provider is None:
        logger.warning("[availability] AI service disabled: provider settings are invalid")
        availability = availability.model_copy(update={"ai": False})
    supabase = (
        SupabaseClient(settings.supabase_url, settings.supabase_anon_key, client)
        if availability.database
        else None
    )

    services = Services(
        settings=settings,
        client=client,
        availability=availability,
        provider=provider,
        supabase=supabase,
        advisor=FarmAdvisor(provider, client),
        history=ChatHistory(supabase, availability.database),
    )
    services.board = WeatherBoard(
        services.fetch_weather,
        services.load_alerts,
        lat=settings.default_latitude,
        lng=settings.default_longitude,
    )
    return services
