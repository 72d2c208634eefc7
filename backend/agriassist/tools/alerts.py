from datetime import datetime, timezone

import httpx
from loguru import logger

from agriassist.models.schemas import DisplayAlert, WeatherAlertRow
from agriassist.tools._supabase import SupabaseClient

ALERTS_TABLE = "weather_alerts"
MAX_ALERTS = 10

FALLBACK_ALERTS = [
    DisplayAlert(
        type="warning",
        title="Heavy Rain Expected",
        message="Heavy rainfall expected tomorrow. Prepare drainage systems and cover sensitive crops.",
        time="2 hours ago",
    ),
    DisplayAlert(
        type="info",
        title="Optimal Planting Conditions",
        message="Perfect soil moisture and temperature for planting maize this week.",
        time="6 hours ago",
    ),
]


def _display_time(created_at: str) -> str:
    try:
        return datetime.fromisoformat(created_at.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return created_at


def to_display_alert(row: WeatherAlertRow) -> DisplayAlert:
    return DisplayAlert(
        type="warning" if row.severity == "high" else "info",
        title=row.title,
        message=row.message,
        time=_display_time(row.created_at),
        severity=row.severity,
        location=row.location,
    )


def fallback_alerts() -> list[DisplayAlert]:
    return [alert.model_copy() for alert in FALLBACK_ALERTS]


async def load_weather_alerts(
    supabase: SupabaseClient | None,
    available: bool,
    now: datetime | None = None,
) -> list[DisplayAlert]:
    """Load active, unexpired alerts, newest first, at most ten.

    Falls back to two static alerts when the database is unavailable or the
    query fails for any reason.
    """
    if not available or supabase is None:
        logger.info("[tool:alerts] Database unavailable - using static alerts")
        return fallback_alerts()

    now = now or datetime.now(timezone.utc)
    try:
        rows = await supabase.select(
            ALERTS_TABLE,
            filters=[("active", "eq", True), ("expires_at", "gte", now.isoformat())],
            order="created_at",
            ascending=False,
            limit=MAX_ALERTS,
        )
        alerts = [to_display_alert(WeatherAlertRow(**row)) for row in rows[:MAX_ALERTS]]
    except httpx.TimeoutException:
        logger.error("[tool:alerts] Error loading weather alerts: timeout")
        return fallback_alerts()
    except Exception as e:
        logger.error("[tool:alerts] Error loading weather alerts: {}", e)
        return fallback_alerts()

    logger.info("[tool:alerts] Loaded {} active alerts", len(alerts))
    return alerts
