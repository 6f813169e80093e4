"""API route aggregation.

All REST routers registered here get mounted in main.py under /api/v1.
The GraphQL router is mounted separately (see postpulse.graphql).
"""

from fastapi import APIRouter

from postpulse.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
