from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from face_attendance.config import settings
from face_attendance.database import get_db
from face_attendance.dependencies import get_extractor
from face_attendance.services.extractor import FaceDescriptorExtractor
from face_attendance.utils.logging import get_logger

router = APIRouter(prefix="/health", tags=["health"])
logger = get_logger(__name__)


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(extractor: FaceDescriptorExtractor = Depends(get_extractor)):
    """Liveness: the server answers; reports whether models are loaded yet."""
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "models_loaded": extractor.is_initialized,
    }


@router.get("/db")
async def db_health_check(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database probe failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "down", "database": "unreachable", "detail": str(exc)},
        )
    return {"status": "up", "database": "connected"}
