"""
FastAPI dependencies shared by the routers.

The refresh service and API settings live on ``app.state`` and are
set up by create_app().
"""
from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from core.config import ApiConfig
from database.engine import get_session
from news_ingestion.refresh_service import NewsRefreshService


def get_db() -> Generator[Session, None, None]:
    db = get_session()
    try:
        yield db
    finally:
        db.close()


def get_api_config(request: Request) -> ApiConfig:
    return request.app.state.api_config


def get_refresh_service(request: Request) -> NewsRefreshService:
    return request.app.state.refresh_service
