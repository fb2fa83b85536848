"""
Matching: identify a live capture among enrolled users and record attendance.

    IDLE -> CAMERA_ACTIVE -> PROCESSING -> SUCCESS | REJECTED
"""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import cv2
import numpy as np
from fastapi.concurrency import run_in_threadpool

from face_attendance.config import settings
from face_attendance.exceptions import (
    AttendanceError,
    AttendanceWriteFailed,
    CameraUnavailable,
    NoFaceDetected,
    NoMatch,
    NoRegisteredUsers,
    StoreError,
)
from face_attendance.models.attendance import AttendanceRecord
from face_attendance.models.user import User
from face_attendance.services import scoring
from face_attendance.services.camera import CameraSource
from face_attendance.services.extractor import FaceDescriptorExtractor
from face_attendance.services.store import AttendanceStore
from face_attendance.utils.logging import get_logger

logger = get_logger(__name__)


class MatchingState(str, Enum):
    IDLE = "idle"
    CAMERA_ACTIVE = "camera_active"
    PROCESSING = "processing"
    SUCCESS = "success"
    REJECTED = "rejected"


@dataclass
class MatchOutcome:
    state: MatchingState
    message: str
    reason: Optional[str] = None
    user: Optional[User] = None
    record: Optional[AttendanceRecord] = None
    confidence: Optional[float] = None

    @property
    def accepted(self) -> bool:
        return self.state is MatchingState.SUCCESS


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class MatchingFlow:
    def __init__(
        self,
        extractor: FaceDescriptorExtractor,
        store: AttendanceStore,
        camera: Optional[CameraSource] = None,
        threshold: Optional[float] = None,
        clock: Callable[[], datetime.datetime] = utcnow,
    ):
        self.extractor = extractor
        self.store = store
        self.camera = camera
        self.threshold = settings.MATCH_THRESHOLD if threshold is None else threshold
        self.clock = clock
        self.state = MatchingState.IDLE
        self._stream: Optional[cv2.VideoCapture] = None

    def __enter__(self) -> "MatchingFlow":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def camera_open(self) -> bool:
        return self._stream is not None

    def activate_camera(self) -> None:
        if self.camera is not None and self._stream is None:
            self._stream = self.camera.acquire()
        self.state = MatchingState.CAMERA_ACTIVE

    def _release_camera(self) -> None:
        if self._stream is not None and self.camera is not None:
            stream, self._stream = self._stream, None
            self.camera.release(stream)

    def _reject(self, error: AttendanceError) -> MatchOutcome:
        # Camera stays available so the user can try again.
        self.state = MatchingState.REJECTED
        logger.info("Attendance rejected: %s", error.code)
        return MatchOutcome(
            state=MatchingState.REJECTED, message=error.message, reason=error.code
        )

    async def process(self, frame: Optional[np.ndarray] = None) -> MatchOutcome:
        if self.state in (MatchingState.IDLE, MatchingState.SUCCESS):
            self.activate_camera()

        self.state = MatchingState.PROCESSING
        try:
            if frame is None:
                if self._stream is None or self.camera is None:
                    raise CameraUnavailable("Camera is not active.")
                frame = self.camera.sample(self._stream)
            detection = await run_in_threadpool(self.extractor.detect, frame)
        except AttendanceError:
            self.state = MatchingState.CAMERA_ACTIVE
            raise
        except Exception as exc:
            self.state = MatchingState.CAMERA_ACTIVE
            logger.exception("Face detection failed")
            raise AttendanceError() from exc

        if detection is None:
            self.state = MatchingState.CAMERA_ACTIVE
            raise NoFaceDetected()

        try:
            users = await self.store.list_users_with_descriptor()
        except AttendanceError:
            self.state = MatchingState.CAMERA_ACTIVE
            raise
        except Exception as exc:
            # Driver errors raised before SQLAlchemy wraps them, e.g. on connect.
            self.state = MatchingState.CAMERA_ACTIVE
            logger.exception("Loading enrolled users failed")
            raise StoreError() from exc

        if not users:
            return self._reject(NoRegisteredUsers())

        candidates = [
            scoring.Candidate(key=str(user.id), descriptor=user.face_descriptor, item=user)
            for user in users
        ]
        try:
            match = scoring.decide(detection.descriptor, candidates, self.threshold)
        except (NoMatch, NoRegisteredUsers) as rejection:
            return self._reject(rejection)

        user = match.item
        confidence = match.confidence_percent
        try:
            record = await self.store.insert_attendance(user.id, confidence, self.clock())
        except Exception as exc:
            self.state = MatchingState.CAMERA_ACTIVE
            logger.exception("Attendance write failed for user %s", user.id)
            raise AttendanceWriteFailed() from exc

        self.state = MatchingState.SUCCESS
        self._release_camera()
        logger.info("Attendance marked for user %s (%.2f%%)", user.id, confidence)
        return MatchOutcome(
            state=MatchingState.SUCCESS,
            message=f"Welcome {user.name}! Attendance marked successfully.",
            user=user,
            record=record,
            confidence=confidence,
        )

    def cancel(self) -> None:
        self._release_camera()
        self.state = MatchingState.IDLE

    def close(self) -> None:
        self._release_camera()
