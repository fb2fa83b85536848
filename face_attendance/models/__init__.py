from .base import Base
from .user import DESCRIPTOR_LENGTH, User
from .attendance import AttendanceRecord

# for wildcard imports
__all__ = ["Base", "User", "AttendanceRecord", "DESCRIPTOR_LENGTH"]
