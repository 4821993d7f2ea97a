from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.dependencies import get_api_config, get_db, get_refresh_service
from api.schemas import ArticleResponse, ClearStaticResponse, RefreshResponse
from core.config import ApiConfig
from database.engine import DatabasePersistenceError, transaction_scope
from news_ingestion.refresh_service import NewsRefreshService
from news_ingestion.types import IngestionStatus, RefreshTrigger
from storage.repositories import (
    NewsArticleRepository,
    RecordNotFoundError,
    RepositoryException,
)

router = APIRouter(prefix="/api/news", tags=["News"])


@router.get("", response_model=List[ArticleResponse])
def list_news(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    config: ApiConfig = Depends(get_api_config),
):
    """
    Latest active articles, newest first. Sample rows are left out.
    """
    if limit is not None and limit > config.max_limit:
        raise HTTPException(status_code=422, detail=f"limit must be at most {config.max_limit}")

    repository = NewsArticleRepository(db)
    try:
        return repository.list_latest(
            limit=limit or config.default_limit,
            exclude_prefix=config.sample_url_prefix,
        )
    except RepositoryException:
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{article_id}", response_model=ArticleResponse)
def get_news_article(article_id: int, db: Session = Depends(get_db)):
    repository = NewsArticleRepository(db)
    try:
        return repository.get_by_id_or_raise(article_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Article not found")
    except RepositoryException:
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_news(service: NewsRefreshService = Depends(get_refresh_service)):
    """
    Run a refresh now. Waits for a run already in progress.
    """
    result = await service.refresh(RefreshTrigger.MANUAL)
    if not result.ok:
        raise HTTPException(status_code=500, detail="Failed to update news database")

    if result.status == IngestionStatus.SKIPPED:
        message = "No articles fetched; existing news kept"
    else:
        message = "News updated successfully"

    return RefreshResponse(
        message=message,
        count=result.count,
        status=result.status.value,
        failed_sources=result.aggregation.failed_sources if result.aggregation else [],
    )


@router.post("/clear-static", response_model=ClearStaticResponse)
def clear_static_news(config: ApiConfig = Depends(get_api_config)):
    """
    Delete sample rows (source URL under the configured sample prefix).
    """
    try:
        with transaction_scope() as session:
            deleted = NewsArticleRepository(session).delete_by_source_prefix(
                config.sample_url_prefix
            )
    except (RepositoryException, DatabasePersistenceError):
        raise HTTPException(status_code=500, detail="Internal server error")

    return ClearStaticResponse(message="Static data cleared successfully", deleted=deleted)
