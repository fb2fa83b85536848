from .attendance import (
    AttendanceHistory,
    AttendanceRead,
    DashboardStats,
    MarkAttendanceResponse,
)
from .user import (
    FaceCaptureResponse,
    RegisterResponse,
    UserBase,
    UserCountResponse,
    UserCreate,
    UserRead,
    UserSummary,
)

__all__ = [
    "UserBase",
    "UserCreate",
    "UserRead",
    "UserSummary",
    "UserCountResponse",
    "FaceCaptureResponse",
    "RegisterResponse",
    "AttendanceRead",
    "AttendanceHistory",
    "MarkAttendanceResponse",
    "DashboardStats",
]
