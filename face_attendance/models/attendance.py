import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Numeric, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin


class AttendanceRecord(Base, CreatedAtMixin):
    __tablename__ = "attendance_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Foreign Key to User (a record never owns the user)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )

    check_in_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    # Percentage (0-100) with two decimals, e.g. 75.00
    face_match_confidence: Mapped[float] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="attendance_records")

    def __repr__(self):
        return (
            f"<AttendanceRecord(user_id={self.user_id}, "
            f"check_in_time='{self.check_in_time}')>"
        )
