"""
Storage Package.

This package manages persistence of the served article batch.

Modules:
- models/: ORM models (news_articles)
- repositories/: Data access layer
"""
