from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from face_attendance.database import get_db
from face_attendance.services.dashboard import DashboardService
from face_attendance.services.extractor import FaceDescriptorExtractor, get_extractor
from face_attendance.services.store import AttendanceStore

__all__ = ["get_store", "get_dashboard", "get_extractor", "FaceDescriptorExtractor"]


async def get_store(db: AsyncSession = Depends(get_db)) -> AttendanceStore:
    return AttendanceStore(db)


async def get_dashboard(
    store: AttendanceStore = Depends(get_store),
) -> DashboardService:
    return DashboardService(store)
