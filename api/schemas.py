"""
Pydantic schemas for the news API.

Field names are serialized in camelCase (imageUrl, sourceUrl,
publishedAt, ...) to match the storefront client.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =======================
# ARTICLES
# =======================

class ArticleResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    source_url: str
    source_name: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    is_active: bool = True


# =======================
# ADMIN ACTIONS
# =======================

class RefreshResponse(CamelModel):
    message: str
    count: int
    status: str
    failed_sources: List[str] = []


class ClearStaticResponse(CamelModel):
    message: str
    deleted: int


# =======================
# HEALTH
# =======================

class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    database: str
    articles: Optional[int] = None
    refresh: Dict[str, Any]
