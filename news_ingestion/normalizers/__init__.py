"""
News Ingestion - Normalizers Package.

Normalizers turn raw feed items into canonical Articles.
"""

from news_ingestion.normalizers.article_normalizer import (
    extract_embedded_image,
    normalize_item,
    normalize_items,
    parse_published,
    resolve_content,
    resolve_description,
    resolve_image_url,
)


__all__ = [
    "extract_embedded_image",
    "normalize_item",
    "normalize_items",
    "parse_published",
    "resolve_content",
    "resolve_description",
    "resolve_image_url",
]
