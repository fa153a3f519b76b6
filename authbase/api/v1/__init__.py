"""
API v1 Router
"""

from fastapi import APIRouter

from authbase.api.v1 import auth, example

router = APIRouter()

# Include all endpoint routers
router.include_router(auth.router)
router.include_router(example.router)

__all__ = ["router"]
