from fastapi import APIRouter

from app.config import settings
from app.infrastructure.engine.recipes import supported_languages

router = APIRouter()


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": "0.1.0",
        "languages": supported_languages(),
    }
