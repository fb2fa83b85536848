import uuid
from typing import List, Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pgvector.sqlalchemy import Vector

from .base import Base, CreatedAtMixin

DESCRIPTOR_LENGTH = 128


class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )

    # Absent until the user has been enrolled.
    face_descriptor: Mapped[Optional[List[float]]] = mapped_column(
        Vector(DESCRIPTOR_LENGTH), nullable=True
    )

    attendance_records = relationship("AttendanceRecord", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"

    @property
    def enrolled(self) -> bool:
        return self.face_descriptor is not None
