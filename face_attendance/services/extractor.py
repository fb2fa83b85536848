from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from face_attendance.config import settings
from face_attendance.services.scoring import DESCRIPTOR_LENGTH
from face_attendance.utils.logging import get_logger

logger = get_logger(__name__)

BBox = Tuple[int, int, int, int]  # top, right, bottom, left


@dataclass(frozen=True)
class Detection:
    bbox: BBox
    landmarks: Dict[str, List[Tuple[int, int]]]
    descriptor: List[float]


def _load_face_recognition() -> Any:
    # dlib loads the detector, the 68-point shape predictor and the
    # ResNet encoder when face_recognition is first imported.
    import face_recognition

    return face_recognition


class _InitState:
    """One-time initialization guard owned by an extractor instance."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.done = False
        self.backend: Any = None

    def ensure(self, loader: Callable[[], Any]) -> Any:
        if self.done:
            return self.backend
        with self._lock:
            if not self.done:
                self.backend = loader()
                self.done = True
        return self.backend


@dataclass
class FaceDescriptorExtractor:
    """
    Image frame -> at most one face with landmarks and a 128-d descriptor.

    The model is loaded by the first initialize() call; later calls are
    no-ops. Pass ``loader`` to swap the backend, it must return an object
    exposing face_recognition's face_locations / face_landmarks /
    face_encodings functions.
    """

    loader: Callable[[], Any] = _load_face_recognition
    model: str = field(default_factory=lambda: settings.FACE_DETECTION_MODEL)
    upsample: int = field(default_factory=lambda: settings.FACE_UPSAMPLE)
    _state: _InitState = field(default_factory=_InitState, init=False, repr=False)

    @property
    def is_initialized(self) -> bool:
        return self._state.done

    def initialize(self) -> None:
        if self._state.done:
            return
        logger.info("Loading face recognition models...")
        self._state.ensure(self.loader)
        logger.info("Face recognition models loaded.")

    def detect(self, frame: np.ndarray) -> Optional[Detection]:
        """
        Returns None when no face, or more than one face, is in the frame.

        ``frame`` is an RGB uint8 array (H, W, 3).
        """
        self.initialize()
        backend = self._state.backend

        locations = backend.face_locations(
            frame, number_of_times_to_upsample=self.upsample, model=self.model
        )
        if len(locations) != 1:
            if len(locations) > 1:
                logger.info("Rejected frame with %d faces", len(locations))
            return None

        encodings = backend.face_encodings(frame, known_face_locations=locations)
        if not encodings:
            return None
        descriptor = [float(value) for value in encodings[0]]
        if len(descriptor) != DESCRIPTOR_LENGTH:
            raise ValueError(
                f"Encoder returned {len(descriptor)} values, expected {DESCRIPTOR_LENGTH}"
            )

        landmarks_list = backend.face_landmarks(frame, face_locations=locations)
        landmarks = landmarks_list[0] if landmarks_list else {}

        top, right, bottom, left = (int(v) for v in locations[0])
        return Detection(
            bbox=(top, right, bottom, left),
            landmarks={
                name: [(int(x), int(y)) for x, y in points]
                for name, points in landmarks.items()
            },
            descriptor=descriptor,
        )


_shared_extractor: Optional[FaceDescriptorExtractor] = None
_shared_lock = threading.Lock()


def get_extractor() -> FaceDescriptorExtractor:
    """Process-wide extractor, used as a FastAPI dependency."""
    global _shared_extractor
    if _shared_extractor is None:
        with _shared_lock:
            if _shared_extractor is None:
                _shared_extractor = FaceDescriptorExtractor()
    return _shared_extractor
