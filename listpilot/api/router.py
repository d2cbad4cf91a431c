"""
Main API router that includes all endpoint routers.
"""
from fastapi import APIRouter

from listpilot.api.v1.endpoints import accounts, jobs, lists, senders, statistics, templates


# Create main API router
api_router = APIRouter()

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"]
)
api_router.include_router(
    accounts.router,
    prefix="/accounts",
    tags=["Accounts"]
)

# Brevo proxies, all scoped to an account
api_router.include_router(
    lists.router,
    prefix="/accounts",
    tags=["Lists"]
)
api_router.include_router(
    senders.router,
    prefix="/accounts",
    tags=["Senders"]
)
api_router.include_router(
    statistics.router,
    prefix="/accounts",
    tags=["Statistics"]
)
api_router.include_router(
    templates.router,
    prefix="/accounts",
    tags=["Templates"]
)
