"""Admin dashboard statistics.

Counts are cached in Redis for settings.dashboard_cache_ttl seconds. This is
an admin read model only; store listings never go through this cache.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.models import Rating, Store, User
from store_ratings.schemas import DashboardStats, RecentActivity, RoleCount
from store_ratings.settings import get_settings
from store_ratings.stores import redis as redis_store

logger = logging.getLogger("uvicorn.error")

RECENT_ACTIVITY_DAYS = 7


async def _count(session: AsyncSession, column, *where) -> int:
    result = await session.execute(select(func.count(column)).where(*where))
    return result.scalar() or 0


async def compute_dashboard_stats(session: AsyncSession, now: datetime | None = None) -> DashboardStats:
    """Query totals, users per role and last-7-days activity."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=RECENT_ACTIVITY_DAYS)

    role_rows = await session.execute(
        select(User.role, func.count(User.id)).group_by(User.role).order_by(User.role)
    )

    return DashboardStats(
        total_users=await _count(session, User.id),
        total_stores=await _count(session, Store.id),
        total_ratings=await _count(session, Rating.id),
        user_stats=[RoleCount(role=role, count=count) for role, count in role_rows.all()],
        recent_activity=RecentActivity(
            new_users=await _count(session, User.id, User.created_at >= since),
            new_ratings=await _count(session, Rating.id, Rating.created_at >= since),
        ),
    )


async def get_dashboard_stats(session: AsyncSession) -> DashboardStats:
    """Get dashboard stats, served from the Redis cache when fresh."""
    settings = get_settings()
    use_cache = redis_store.redis_enabled() and settings.dashboard_cache_ttl > 0

    if use_cache:
        cached = await redis_store.get_dashboard_stats_cache()
        if cached:
            return DashboardStats.model_validate(cached)

    stats = await compute_dashboard_stats(session)

    if use_cache:
        await redis_store.set_dashboard_stats_cache(
            stats.model_dump(mode="json", by_alias=True),
            settings.dashboard_cache_ttl,
        )
        logger.debug("[dashboard] cached stats ttl=%s", settings.dashboard_cache_ttl)

    return stats
