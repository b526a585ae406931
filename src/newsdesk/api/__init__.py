"""API route aggregation.

All routers registered here get mounted under /api/v1 in main.py.
Access policies are applied per route (see auth.dependencies), since
each article router mixes open reads with gated writes.
"""

from fastapi import APIRouter

from newsdesk.api.admin import router as admin_router
from newsdesk.api.articles import router as articles_router
from newsdesk.api.auth import router as auth_router
from newsdesk.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")


@api_router.get("", include_in_schema=False)
async def welcome():
    return {"message": "Welcome to the newsdesk API"}


api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth", "users"])
api_router.include_router(articles_router, tags=["articles"])
api_router.include_router(admin_router, tags=["admin"])
