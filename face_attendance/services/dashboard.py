import datetime
from typing import List, Optional

from face_attendance.config import settings
from face_attendance.models.attendance import AttendanceRecord
from face_attendance.services.store import AttendanceStore


def start_of_day(now: datetime.datetime) -> datetime.datetime:
    """Local midnight of ``now``'s day, expressed in UTC."""
    if now.tzinfo is None:
        now = now.astimezone()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(datetime.timezone.utc)


class DashboardService:
    def __init__(self, store: AttendanceStore):
        self.store = store

    async def recent_attendance(
        self, limit: Optional[int] = None
    ) -> List[AttendanceRecord]:
        return await self.store.list_attendance(limit or settings.HISTORY_LIMIT)

    async def stats(self, now: Optional[datetime.datetime] = None) -> dict:
        now = now or datetime.datetime.now().astimezone()
        confidences = await self.store.list_attendance_confidences_since(
            start_of_day(now)
        )
        total_users = await self.store.count_users()
        average = sum(confidences) / len(confidences) if confidences else 0.0
        return {
            "total_today": len(confidences),
            "total_users": total_users,
            "average_confidence": round(average, 2),
        }
