import cv2
import numpy as np

from face_attendance.exceptions import InvalidImage


def decode_image(data: bytes) -> np.ndarray:
    """JPEG/PNG bytes -> RGB array, the layout face_recognition expects."""
    if not data:
        raise InvalidImage("Image upload is empty.")
    array = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(array, cv2.IMREAD_COLOR)
    if bgr is None:
        raise InvalidImage()
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def encode_jpeg(rgb: np.ndarray, quality: int = 90) -> bytes:
    bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    ok, buffer = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise InvalidImage("Unable to encode frame as JPEG.")
    return buffer.tobytes()
