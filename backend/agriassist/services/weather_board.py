"""Server-side view state for the weather dashboard."""

from typing import Awaitable, Callable

from loguru import logger

from agriassist.models.schemas import BoardState, DisplayAlert, QuickLocation, WeatherReport
from agriassist.tools.weather import DEFAULT_LATITUDE, DEFAULT_LONGITUDE, QUICK_LOCATIONS

FetchWeather = Callable[[float, float], Awaitable[WeatherReport]]
LoadAlerts = Callable[[], Awaitable[list[DisplayAlert]]]


def location_name(lat: float, lng: float) -> str:
    for loc in QUICK_LOCATIONS:
        if abs(loc.lat - lat) < 0.1 and abs(loc.lng - lng) < 0.1:
            return loc.name
    return "Custom"


class WeatherBoard:
    """Loading / error / data state for one dashboard.

    Refreshes can overlap when the location changes quickly. Each one takes a
    request id and only the most recently started refresh may write state.
    """

    def __init__(self, fetch: FetchWeather, load_alerts: LoadAlerts,
                 lat: float = DEFAULT_LATITUDE, lng: float = DEFAULT_LONGITUDE):
        self._fetch = fetch
        self._load_alerts = load_alerts
        self.lat = lat
        self.lng = lng
        self.loading = True
        self.error: str | None = None
        self.report: WeatherReport | None = None
        self.alerts: list[DisplayAlert] = []
        self._request_id = 0

    async def refresh(self) -> bool:
        """Fetch for the current location. Returns False if the result was stale."""
        self._request_id += 1
        request_id = self._request_id
        lat, lng = self.lat, self.lng
        self.loading = True
        self.error = None

        report = await self._fetch(lat, lng)

        if request_id != self._request_id:
            logger.debug("[board] Discarding stale weather for ({}, {}), request {}", lat, lng, request_id)
            return False
        self.report = report
        self.error = report.notice
        self.loading = False
        return True

    async def set_location(self, lat: float, lng: float) -> bool:
        self.lat, self.lng = lat, lng
        return await self.refresh()

    async def load_alerts(self) -> list[DisplayAlert]:
        self.alerts = await self._load_alerts()
        return self.alerts

    async def start(self):
        await self.load_alerts()
        await self.refresh()

    def snapshot(self) -> BoardState:
        return BoardState(
            loading=self.loading,
            error=self.error,
            location=QuickLocation(name=location_name(self.lat, self.lng), lat=self.lat, lng=self.lng),
            current=self.report.current if self.report else None,
            forecast=self.report.forecast if self.report else [],
            alerts=self.alerts,
            status=self.report.status if self.report else None,
        )
