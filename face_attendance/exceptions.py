"""
Error taxonomy for the attendance flows.

Every error carries a stable ``code``, the HTTP status the API answers with,
and the message shown to the person in front of the camera. None of them is
fatal: each one leaves the flow in a state the user can retry from.
"""


class ConfigurationError(RuntimeError):
    """Required configuration is missing or invalid."""


class AttendanceError(Exception):
    code = "attendance_error"
    status_code = 500
    default_message = "An error occurred. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NoFaceDetected(AttendanceError):
    code = "no_face_detected"
    status_code = 422
    default_message = "No face detected. Please ensure your face is clearly visible."


class CameraUnavailable(AttendanceError):
    code = "camera_unavailable"
    status_code = 503
    default_message = "Unable to access camera. Please grant camera permissions."


class InvalidImage(AttendanceError):
    code = "invalid_image"
    status_code = 400
    default_message = "Unable to decode image data."


class InvalidDescriptor(AttendanceError):
    code = "invalid_descriptor"
    status_code = 422
    default_message = "Face descriptor has an unexpected length."


class MissingFaceCapture(AttendanceError):
    code = "missing_face_capture"
    status_code = 400
    default_message = "Please capture your face before submitting."


class DuplicateEmail(AttendanceError):
    code = "duplicate_email"
    status_code = 409
    default_message = "This email is already registered."


class NoRegisteredUsers(AttendanceError):
    code = "no_registered_users"
    status_code = 404
    default_message = "No registered users found. Please register first."


class NoMatch(AttendanceError):
    code = "no_match"
    status_code = 404
    default_message = "Face not recognized. Please try again or register first."


class StoreError(AttendanceError):
    code = "store_error"
    status_code = 500
    default_message = "The attendance database could not complete the request."


class RegistrationFailed(AttendanceError):
    code = "registration_failed"
    status_code = 500
    default_message = "An error occurred during registration. Please try again."


class AttendanceWriteFailed(AttendanceError):
    code = "attendance_write_failed"
    status_code = 500
    default_message = "An error occurred. Please try again."
