"""
API Router.

Aggregates all endpoint routers under application.api_prefix (/api).
"""

from fastapi import APIRouter

from adminui.backend.api.endpoints import auth, server, user

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(server.router, prefix="/server", tags=["server"])
router.include_router(user.router, prefix="/server", tags=["settings"])
router.include_router(user.router, prefix="/user", tags=["settings"])
