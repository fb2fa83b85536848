"""
Enrollment: capture one face descriptor, then register it with a name and
email.

    IDLE -> CAMERA_ACTIVE -> CAPTURED -> SUBMITTED -> IDLE

The descriptor is held in memory between capture and submit and is only
persisted by submit(). A failed capture leaves the flow in CAMERA_ACTIVE so
the user can try again; a failed submit keeps the held descriptor.
"""

from enum import Enum
from typing import Optional, Sequence

import cv2
import numpy as np
from fastapi.concurrency import run_in_threadpool

from face_attendance.exceptions import (
    AttendanceError,
    CameraUnavailable,
    DuplicateEmail,
    MissingFaceCapture,
    NoFaceDetected,
    RegistrationFailed,
)
from face_attendance.models.user import User
from face_attendance.services.camera import CameraSource
from face_attendance.services.extractor import Detection, FaceDescriptorExtractor
from face_attendance.services.scoring import as_descriptor
from face_attendance.services.store import AttendanceStore
from face_attendance.utils.logging import get_logger

logger = get_logger(__name__)


class EnrollmentState(str, Enum):
    IDLE = "idle"
    CAMERA_ACTIVE = "camera_active"
    CAPTURED = "captured"
    SUBMITTED = "submitted"


class EnrollmentFlow:
    def __init__(
        self,
        extractor: FaceDescriptorExtractor,
        store: AttendanceStore,
        camera: Optional[CameraSource] = None,
    ):
        self.extractor = extractor
        self.store = store
        self.camera = camera
        self.state = EnrollmentState.IDLE
        self.descriptor: Optional[list[float]] = None
        self._stream: Optional[cv2.VideoCapture] = None

    def __enter__(self) -> "EnrollmentFlow":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def camera_open(self) -> bool:
        return self._stream is not None

    def activate_camera(self) -> None:
        if self.camera is not None and self._stream is None:
            # CameraUnavailable propagates; nothing was acquired.
            self._stream = self.camera.acquire()
        self.state = EnrollmentState.CAMERA_ACTIVE

    def _release_camera(self) -> None:
        if self._stream is not None and self.camera is not None:
            stream, self._stream = self._stream, None
            self.camera.release(stream)

    def hold(self, descriptor: Sequence[float]) -> None:
        """Adopt a descriptor captured by an earlier request."""
        self.descriptor = as_descriptor(descriptor).tolist()
        self.state = EnrollmentState.CAPTURED

    async def capture(self, frame: Optional[np.ndarray] = None) -> Detection:
        if self.state is EnrollmentState.IDLE:
            self.activate_camera()

        try:
            if frame is None:
                if self._stream is None or self.camera is None:
                    raise CameraUnavailable("Camera is not active.")
                frame = self.camera.sample(self._stream)
            detection = await run_in_threadpool(self.extractor.detect, frame)
        except AttendanceError:
            self._release_camera()
            raise
        except Exception as exc:
            self._release_camera()
            logger.exception("Face capture failed")
            raise AttendanceError(
                "An error occurred while capturing your face. Please try again."
            ) from exc

        # The camera closes after every capture attempt.
        self._release_camera()

        if detection is None:
            self.state = EnrollmentState.CAMERA_ACTIVE
            raise NoFaceDetected()

        self.descriptor = list(detection.descriptor)
        self.state = EnrollmentState.CAPTURED
        logger.info("Face captured for enrollment")
        return detection

    async def submit(self, name: str, email: str) -> User:
        if self.descriptor is None:
            raise MissingFaceCapture()

        try:
            user = await self.store.insert_user(name, email, self.descriptor)
        except DuplicateEmail:
            logger.info("Registration rejected: email already registered")
            raise
        except Exception as exc:
            logger.exception("Registration failed")
            raise RegistrationFailed() from exc

        self.state = EnrollmentState.SUBMITTED
        logger.info("Registered user %s", user.id)
        self.reset()
        return user

    def cancel(self) -> None:
        self._release_camera()
        self.state = (
            EnrollmentState.CAPTURED
            if self.descriptor is not None
            else EnrollmentState.IDLE
        )

    def reset(self) -> None:
        self._release_camera()
        self.descriptor = None
        self.state = EnrollmentState.IDLE

    def close(self) -> None:
        self._release_camera()
