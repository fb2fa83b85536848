import datetime
import uuid
from typing import List, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from face_attendance.exceptions import DuplicateEmail, StoreError
from face_attendance.models.attendance import AttendanceRecord
from face_attendance.models.user import User
from face_attendance.services.scoring import as_descriptor
from face_attendance.utils.logging import get_logger

logger = get_logger(__name__)


def _is_unique_violation(exc: IntegrityError) -> bool:
    # 23505 = unique_violation on Postgres; SQLite only reports it in the text.
    if getattr(exc.orig, "sqlstate", None) == "23505":
        return True
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


class AttendanceStore:
    """Users and attendance events, persisted through one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_user(
        self, name: str, email: str, descriptor: Sequence[float] | None
    ) -> User:
        email = email.strip().lower()
        vector = as_descriptor(descriptor).tolist() if descriptor is not None else None

        try:
            existing = await self.db.execute(select(User.id).where(User.email == email))
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        if existing.scalar_one_or_none() is not None:
            raise DuplicateEmail()

        new_user = User(name=name.strip(), email=email, face_descriptor=vector)
        self.db.add(new_user)
        try:
            await self.db.commit()
            await self.db.refresh(new_user)
            return new_user
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            if _is_unique_violation(exc):
                raise DuplicateEmail() from exc
            raise StoreError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreError(str(exc)) from exc

    async def insert_attendance(
        self,
        user_id: uuid.UUID,
        confidence: float,
        check_in_time: datetime.datetime,
    ) -> AttendanceRecord:
        record = AttendanceRecord(
            user_id=user_id,
            face_match_confidence=confidence,
            check_in_time=check_in_time,
        )
        self.db.add(record)
        try:
            await self.db.commit()
            await self.db.refresh(record)
            return record
        except SQLAlchemyError as exc:
            # Single transaction: nothing is left behind on failure.
            await self.db.rollback()
            raise StoreError(str(exc)) from exc

    async def list_users_with_descriptor(self) -> List[User]:
        """Every enrolled user. Not paginated: the set must fit one fetch."""
        query = (
            select(User)
            .where(User.face_descriptor.is_not(None))
            .order_by(User.created_at)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return list(result.scalars().all())

    async def list_attendance(self, limit: int = 50) -> List[AttendanceRecord]:
        query = (
            select(AttendanceRecord)
            .options(selectinload(AttendanceRecord.user))
            .order_by(AttendanceRecord.check_in_time.desc())
            .limit(limit)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return list(result.scalars().all())

    async def count_users(self) -> int:
        try:
            result = await self.db.execute(select(func.count(User.id)))
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return int(result.scalar_one() or 0)

    async def list_attendance_confidences_since(
        self, since: datetime.datetime
    ) -> List[float]:
        query = select(AttendanceRecord.face_match_confidence).where(
            AttendanceRecord.check_in_time >= since
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return [float(value) for value in result.scalars().all()]
