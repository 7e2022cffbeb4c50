"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from skillswap.api.v1 import bids, contracts, health, notifications, projects
from skillswap.core.config import get_config

api_router = APIRouter(prefix=get_config().API_PREFIX)
api_router.include_router(health.router)
# bids before projects: /projects/bids/... must not be read as a project id.
api_router.include_router(bids.router)
api_router.include_router(projects.router)
api_router.include_router(contracts.router)
api_router.include_router(notifications.router)


def get_api_router() -> APIRouter:
    return api_router
