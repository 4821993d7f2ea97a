"""
Storage Models Package.

All ORM models register on ``Base.metadata`` when this package
is imported.
"""

from storage.models.base import Base, UTCDateTime
from storage.models.news import NewsArticle


__all__ = [
    "Base",
    "NewsArticle",
    "UTCDateTime",
]
