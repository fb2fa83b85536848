import datetime  # Import module to avoid name collision with field names
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


# --- Read Schema (Output) ---
class AttendanceRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    check_in_time: datetime.datetime
    face_match_confidence: float = Field(..., ge=0.0, le=100.0)
    created_at: datetime.datetime

    # Joined user name/email for the dashboard table
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceHistory(BaseModel):
    records: List[AttendanceRead]


class MarkAttendanceResponse(BaseModel):
    status: str = Field(..., examples=["success", "rejected"])
    message: str
    # Set when rejected: no_match or no_registered_users
    reason: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    name: Optional[str] = None
    confidence: Optional[float] = None
    check_in_time: Optional[datetime.datetime] = None


class DashboardStats(BaseModel):
    total_today: int
    total_users: int
    average_confidence: float
