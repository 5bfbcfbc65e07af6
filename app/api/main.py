from fastapi import APIRouter

from .endpoints.ai import router as ai_router
from .endpoints.health import router as health_router
from .endpoints.profile import router as profile_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Double API is running"}


api_router.include_router(health_router)
api_router.include_router(profile_router)
api_router.include_router(ai_router)
