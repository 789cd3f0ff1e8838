"""SQLAlchemy ORM models.

Models represent database tables:
- users: Accounts with a role (admin, user, store_owner)
- stores: Rated stores, optionally linked to an owner
- ratings: One 1-5 score per (user, store) pair
"""

from store_ratings.models.user import User, UserRole
from store_ratings.models.store import Store, StoreCategory
from store_ratings.models.rating import Rating

__all__ = ["User", "UserRole", "Store", "StoreCategory", "Rating"]
