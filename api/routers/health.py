from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_db, get_refresh_service
from api.schemas import HealthResponse
from news_ingestion.refresh_service import NewsRefreshService
from storage.repositories import NewsArticleRepository, RepositoryException

router = APIRouter(tags=["System Health"])


@router.get("/health", response_model=HealthResponse)
def get_health(
    db: Session = Depends(get_db),
    service: NewsRefreshService = Depends(get_refresh_service),
):
    """
    Service status, stored article count and refresh metrics.
    """
    try:
        articles = NewsArticleRepository(db).count_active()
        database = "ok"
    except RepositoryException:
        articles = None
        database = "unavailable"

    last = service.last_result
    degraded = database != "ok" or (last is not None and not last.ok)

    return HealthResponse(
        status="degraded" if degraded else "ok",
        timestamp=datetime.now(timezone.utc),
        database=database,
        articles=articles,
        refresh=service.get_health_status(),
    )
