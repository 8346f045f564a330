"""Aggregate all API routers."""

from fastapi import APIRouter

from . import listings, search, subscriptions, system, users

api_router = APIRouter()
api_router.include_router(subscriptions.router)
api_router.include_router(listings.router)
api_router.include_router(users.router)
api_router.include_router(search.router)
api_router.include_router(system.router)
