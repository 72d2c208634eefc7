from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger

from agriassist.errors import AgriAssistError, ServiceNotAvailable
from agriassist.models.schemas import (
    AuthResult,
    AuthUser,
    BoardState,
    ChatMessageRow,
    ChatReply,
    ChatRequest,
    Credentials,
    DisplayAlert,
    LocationUpdate,
    QuickLocation,
    UserPreferences,
    WeatherReport,
)
from agriassist.services.auth import AuthBridge
from agriassist.services.container import Services
from agriassist.tools.weather import QUICK_LOCATIONS

router = APIRouter()


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.get("/status")
async def status(services: Services = Depends(get_services)):
    return {
        "database": services.availability.database,
        "ai": services.availability.ai,
        "provider": services.advisor.provider_info(),
        "api_key_status": services.advisor.api_key_status(),
    }


# --- Weather ---


@router.get("/weather", response_model=WeatherReport)
async def weather(
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    services: Services = Depends(get_services),
):
    settings = services.settings
    return await services.fetch_weather(
        settings.default_latitude if lat is None else lat,
        settings.default_longitude if lng is None else lng,
    )


@router.get("/weather/locations", response_model=list[QuickLocation])
async def weather_locations():
    return QUICK_LOCATIONS


@router.get("/alerts", response_model=list[DisplayAlert])
async def alerts(services: Services = Depends(get_services)):
    return await services.load_alerts()


# --- Dashboard state ---


@router.get("/board", response_model=BoardState)
async def board(services: Services = Depends(get_services)):
    if services.board.report is None:
        await services.board.start()
    return services.board.snapshot()


@router.post("/board/refresh", response_model=BoardState)
async def board_refresh(services: Services = Depends(get_services)):
    await services.board.refresh()
    return services.board.snapshot()


@router.post("/board/location", response_model=BoardState)
async def board_location(payload: LocationUpdate, services: Services = Depends(get_services)):
    await services.board.set_location(payload.lat, payload.lng)
    return services.board.snapshot()


# --- Chat ---


@router.post("/chat", response_model=ChatReply)
async def chat(payload: ChatRequest, services: Services = Depends(get_services)):
    try:
        reply = await services.advisor.generate_response(payload.message, payload.context)
    except ServiceNotAvailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AgriAssistError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if payload.user_id and services.history.available:
        try:
            await services.history.save_message(payload.user_id, payload.message, "user", reply.category)
            await services.history.save_message(payload.user_id, reply.text, "bot", reply.category)
        except AgriAssistError as e:
            logger.warning("[chat] Could not save chat turn for {}: {}", payload.user_id, e)
    return reply


@router.get("/chat/{user_id}/history", response_model=list[ChatMessageRow])
async def chat_history(
    user_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    services: Services = Depends(get_services),
):
    try:
        return await services.history.recent_messages(user_id, limit=limit)
    except ServiceNotAvailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AgriAssistError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/preferences/{user_id}", response_model=UserPreferences)
async def get_preferences(user_id: str, services: Services = Depends(get_services)):
    try:
        prefs = await services.history.get_preferences(user_id)
    except ServiceNotAvailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AgriAssistError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if prefs is None:
        raise HTTPException(status_code=404, detail=f"No preferences for {user_id}")
    return prefs


@router.put("/preferences/{user_id}", response_model=UserPreferences)
async def put_preferences(user_id: str, payload: UserPreferences, services: Services = Depends(get_services)):
    try:
        return await services.history.save_preferences(payload.model_copy(update={"user_id": user_id}))
    except ServiceNotAvailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AgriAssistError as e:
        raise HTTPException(status_code=502, detail=str(e))


# --- Auth ---


def bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_auth(services: Services = Depends(get_services)) -> AuthBridge:
    return services.auth_bridge()


@router.post("/auth/signup", response_model=AuthResult)
async def sign_up(payload: Credentials, auth: AuthBridge = Depends(get_auth)):
    return await auth.sign_up(payload.email, payload.password)


@router.post("/auth/signin", response_model=AuthResult)
async def sign_in(payload: Credentials, auth: AuthBridge = Depends(get_auth)):
    return await auth.sign_in(payload.email, payload.password)


@router.post("/auth/signout", response_model=AuthResult)
async def sign_out(request: Request, auth: AuthBridge = Depends(get_auth)):
    token = bearer_token(request)
    if token:
        auth.use_token(token)
    return await auth.sign_out()


@router.get("/auth/session")
async def session(request: Request, auth: AuthBridge = Depends(get_auth)) -> dict:
    token = bearer_token(request)
    if token:
        await auth.restore(token)
    user: AuthUser | None = auth.current_user
    return {
        "user": user.model_dump() if user else None,
        "loading": auth.loading,
    }
