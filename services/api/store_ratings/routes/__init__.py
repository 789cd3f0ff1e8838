"""API routes."""

from fastapi import APIRouter

from store_ratings.routes import auth, ratings, stores, users

api_router = APIRouter(prefix="/api")

# Authentication (register / login / logout)
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# User management (admin) + profile
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Store directory, owner views and store CRUD
api_router.include_router(stores.router, prefix="/stores", tags=["stores"])

# Ratings
api_router.include_router(ratings.router, prefix="/ratings", tags=["ratings"])
