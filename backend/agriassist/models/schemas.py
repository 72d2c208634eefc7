from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Literal, Optional
from enum import Enum


class DataStatus(str, Enum):
    LIVE = "LIVE"
    OFFLINE = "OFFLINE"


class WeatherIcon(str, Enum):
    RAIN = "cloud-rain"
    CLOUD = "cloud"
    SUN = "sun"


class Availability(BaseModel):
    """Which remote dependencies may be called. Computed once at startup."""
    database: bool = False
    ai: bool = False

    model_config = {"frozen": True}


# --- Weather ---


class CurrentWeather(BaseModel):
    temperature: int
    condition: str
    humidity: int
    wind_speed: int
    icon: WeatherIcon
    description: str


class ForecastDay(BaseModel):
    day: str
    temp: int
    condition: str
    icon: WeatherIcon
    rain: int
    description: str


class WeatherReport(BaseModel):
    current: Optional[CurrentWeather] = None
    forecast: list[ForecastDay] = []
    status: DataStatus
    error: Optional[str] = None
    notice: Optional[str] = None
    latitude: float
    longitude: float
    fetched_at: Optional[str] = None


class QuickLocation(BaseModel):
    name: str
    lat: float
    lng: float


# --- Alerts ---


Severity = Literal["low", "medium", "high"]


class WeatherAlertRow(BaseModel):
    id: Optional[str] = None
    location: Optional[str] = None
    alert_type: Optional[str] = None
    title: str
    message: str
    severity: Severity
    active: bool = True
    created_at: str
    expires_at: Optional[str] = None


class DisplayAlert(BaseModel):
    type: Literal["warning", "info"]
    title: str
    message: str
    time: str
    severity: Optional[Severity] = None
    location: Optional[str] = None


# --- Chat ---


class ChatContext(BaseModel):
    """Advisory inputs to prompt construction. Never validated beyond shape."""
    category: Optional[str] = None
    farm_data: Optional[list[dict[str, Any]]] = None
    user_preferences: Optional[dict[str, Any]] = None


class ChatReply(BaseModel):
    text: str
    confidence: float
    category: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)
    user_id: Optional[str] = None
    context: ChatContext = Field(default_factory=ChatContext)


class ChatMessageRow(BaseModel):
    id: Optional[str] = None
    user_id: str
    message: str
    sender: Literal["user", "bot"]
    category: Optional[str] = None
    timestamp: str
    created_at: Optional[str] = None


class UserPreferences(BaseModel):
    id: Optional[str] = None
    user_id: str
    language: str = "en"
    location: Optional[str] = None
    farm_size: Optional[str] = None
    primary_crops: Optional[list[str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# --- Auth ---


class Credentials(BaseModel):
    email: str
    password: str


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: Optional[AuthUser] = None


class AuthError(BaseModel):
    message: str
    status: Optional[int] = None


class AuthResult(BaseModel):
    """Mirrors the provider's `{data, error}` envelope. Errors are values here, not exceptions."""
    data: Optional[dict[str, Any]] = None
    error: Optional[AuthError] = None


# --- Board ---


class LocationUpdate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class BoardState(BaseModel):
    loading: bool
    error: Optional[str] = None
    location: QuickLocation
    current: Optional[CurrentWeather] = None
    forecast: list[ForecastDay] = []
    alerts: list[DisplayAlert] = []
    status: Optional[DataStatus] = None
