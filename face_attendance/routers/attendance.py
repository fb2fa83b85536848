from fastapi import APIRouter, Depends, File, Query, UploadFile

from face_attendance.dependencies import get_dashboard, get_extractor, get_store
from face_attendance.schemas.attendance import (
    AttendanceHistory,
    AttendanceRead,
    DashboardStats,
    MarkAttendanceResponse,
)
from face_attendance.services.dashboard import DashboardService
from face_attendance.services.extractor import FaceDescriptorExtractor
from face_attendance.services.matching import MatchingFlow
from face_attendance.services.store import AttendanceStore
from face_attendance.utils.image import decode_image

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/mark", response_model=MarkAttendanceResponse)
async def mark_attendance(
    image: UploadFile = File(...),
    extractor: FaceDescriptorExtractor = Depends(get_extractor),
    store: AttendanceStore = Depends(get_store),
):
    frame = decode_image(await image.read())
    with MatchingFlow(extractor, store) as flow:
        outcome = await flow.process(frame)

    if not outcome.accepted:
        # Not recognizing someone is an expected outcome, not a fault.
        return MarkAttendanceResponse(
            status="rejected", reason=outcome.reason, message=outcome.message
        )

    return MarkAttendanceResponse(
        status="success",
        message=outcome.message,
        user_id=outcome.user.id,
        name=outcome.user.name,
        confidence=outcome.confidence,
        check_in_time=outcome.record.check_in_time,
    )


@router.get("/history", response_model=AttendanceHistory)
async def get_attendance_history(
    limit: int = Query(default=50, ge=1, le=200),
    dashboard: DashboardService = Depends(get_dashboard),
):
    """
    Latest check-ins first, with the user's name and email.
    """
    records = await dashboard.recent_attendance(limit)
    return AttendanceHistory(
        records=[AttendanceRead.model_validate(record) for record in records]
    )


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(dashboard: DashboardService = Depends(get_dashboard)):
    return DashboardStats(**await dashboard.stats())
