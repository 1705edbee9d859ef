from fastapi import APIRouter

from src.api.v1.endpoints import avatars

api_router = APIRouter()

api_router.include_router(avatars.router, tags=["avatars"])
