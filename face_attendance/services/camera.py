from contextlib import contextmanager
from typing import Iterator

import cv2
import numpy as np

from face_attendance.config import settings
from face_attendance.exceptions import CameraUnavailable
from face_attendance.utils.logging import get_logger

logger = get_logger(__name__)


class CameraSource:
    """
    Local webcam through OpenCV. Streams must always be handed back to
    release(); prefer the open_camera() context manager.
    """

    def __init__(self, index: int | None = None, width: int = 640, height: int = 480):
        self.index = settings.CAMERA_INDEX if index is None else index
        self.width = width
        self.height = height

    def acquire(self) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailable()
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        # Buffer size 1 so we always read the latest frame
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        logger.info("Camera %s acquired", self.index)
        return capture

    def release(self, stream: cv2.VideoCapture) -> None:
        stream.release()
        logger.info("Camera %s released", self.index)

    def sample(self, stream: cv2.VideoCapture) -> np.ndarray:
        """Grab one frame and return it as RGB."""
        ok, frame = stream.read()
        if not ok or frame is None:
            raise CameraUnavailable("Camera stopped delivering frames.")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    @contextmanager
    def open_camera(self) -> Iterator[cv2.VideoCapture]:
        stream = self.acquire()
        try:
            yield stream
        finally:
            self.release(stream)
