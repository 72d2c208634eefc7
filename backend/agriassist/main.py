from contextlib import asynccontextmanager

import httpx
from loguru import logger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agriassist.config import Settings, settings as default_settings
from agriassist.db import init_db
from agriassist.logging_config import setup_logging
from agriassist.routers import farm
from agriassist.services.container import build_services

setup_logging(
    default_settings.log_level,
    json_logs=default_settings.log_json,
    access_log=default_settings.log_access,
)


def create_app(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the API. ``transport`` replaces the network for every outbound call."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(transport=transport) as client:
            services = build_services(settings, client)
            if settings.database_url:
                try:
                    await init_db(settings.database_url)
                except Exception as e:
                    logger.error("[db] Schema bootstrap failed: {}", e)
            app.state.services = services
            logger.info("AgriAssist ready - database={} ai={}",
                        services.availability.database, services.availability.ai)
            yield

    app = FastAPI(title="AgriAssist - Backend", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(farm.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
