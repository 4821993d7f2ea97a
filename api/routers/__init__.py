"""
News API Routers.
"""
from . import health, news

__all__ = ["health", "news"]
