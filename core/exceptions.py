"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the service-wide exception root and configuration errors.

Layer-specific errors live next to the layer that raises them:
- news_ingestion.types: FetchError, ParseError, StorageError
- storage.repositories.exceptions: RepositoryException family
- database.engine: DatabasePersistenceError family

============================================================
EXCEPTION HIERARCHY
============================================================
NewsServiceError (base)
└── ConfigurationError
    └── InvalidConfigError

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class NewsServiceError(Exception):
    """
    Base exception for news service errors.

    All exceptions carry:
    - context: for debugging
    - recoverable: for error handling decisions
    - timestamp: when the error occurred
    """

    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(NewsServiceError):
    """Error in configuration."""

    default_recoverable = False

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """Configuration value is present but cannot be used."""

    def __init__(self, config_key: str, actual_value: Any, reason: str, **kwargs):
        super().__init__(
            f"Invalid value for {config_key}: {reason}",
            config_key=config_key,
            actual_value=actual_value,
            **kwargs,
        )
        self.reason = reason


__all__ = [
    "NewsServiceError",
    "ConfigurationError",
    "InvalidConfigError",
]
