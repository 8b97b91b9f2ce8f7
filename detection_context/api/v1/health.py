"""
Health check
"""

from fastapi import APIRouter

from detection_context.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    return {
        "api": "ok",
        "env": settings.env,
        "collection": settings.collection_name,
    }
