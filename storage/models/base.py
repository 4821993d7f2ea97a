"""
Base ORM Model and Column Types.

============================================================
PURPOSE
============================================================
Provides the declarative base and shared column types used by
all ORM models in the news service.

============================================================
COMPONENTS
============================================================
- UTCDateTime: timezone-aware datetime column, UTC in and out
- Base: SQLAlchemy declarative base for all models

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as UTC.

    SQLite drops tzinfo on the way back; values read from any
    backend are returned as aware UTC datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    Every ``Mapped[datetime]`` column is stored as UTCDateTime.
    """

    type_annotation_map = {
        datetime: UTCDateTime(),
    }
