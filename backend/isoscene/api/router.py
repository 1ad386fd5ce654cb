"""Master API router — mounts all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from isoscene.api import components, diagram, health, labels

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(diagram.router)
api_router.include_router(labels.router)
api_router.include_router(components.router)
