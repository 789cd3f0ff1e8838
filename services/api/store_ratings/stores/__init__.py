"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, ORM base, schema bootstrap
- Redis: caching, token revocation, TTL policies

No business/aggregation logic in stores - that belongs in services.
"""
