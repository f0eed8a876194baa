"""
API router modules.

This package contains FastAPI routers organized by feature area:
- jobs: Video analysis job creation, polling and listing
- status: Service banner and health check for monitoring
"""

from app.api.routers.jobs import router as jobs_router
from app.api.routers.status import router as status_router

__all__ = [
    "jobs_router",
    "status_router",
]
