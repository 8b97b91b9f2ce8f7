"""
API Router configuration
"""

from fastapi import APIRouter

from detection_context.api.v1 import context, health, widget

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(context.router, tags=["context"])
api_router.include_router(widget.router, prefix="/ws", tags=["websocket"])
