from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import health, news
from core.config import Settings, load_settings
from database.engine import configure_database, initialize_database
from news_ingestion.refresh_service import NewsRefreshService, create_refresh_service


def create_app(
    settings: Optional[Settings] = None,
    refresh_service: Optional[NewsRefreshService] = None,
) -> FastAPI:
    """
    Build the news API.

    Binds the database from ``settings``; tables are created and the
    periodic refresh loop is started when the app starts up.
    """
    settings = settings or load_settings()
    refresh_service = refresh_service or create_refresh_service(settings)
    configure_database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_database()
        if settings.scheduler_enabled:
            refresh_service.start_background()
        yield
        await refresh_service.stop()

    app = FastAPI(
        title="Health News API",
        description="Latest health news aggregated from syndication feeds.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.api_config = settings.api_config()
    app.state.refresh_service = refresh_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(news.router)
    app.include_router(health.router)

    return app
