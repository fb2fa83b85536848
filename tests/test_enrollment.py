import pytest

from face_attendance.exceptions import (
    AttendanceError,
    CameraUnavailable,
    DuplicateEmail,
    InvalidDescriptor,
    MissingFaceCapture,
    NoFaceDetected,
    RegistrationFailed,
)
from face_attendance.services.enrollment import EnrollmentFlow, EnrollmentState

from .conftest import FakeCamera, StubExtractor, descriptor_at, make_detection


async def test_submit_without_capture_makes_no_store_call(fake_store):
    flow = EnrollmentFlow(StubExtractor(), fake_store)

    with pytest.raises(MissingFaceCapture):
        await flow.submit("Jane", "jane@example.com")

    assert fake_store.calls == []


async def test_no_face_allows_retry(fake_store, frame):
    extractor = StubExtractor(None, make_detection(descriptor_at(0.1)))
    flow = EnrollmentFlow(extractor, fake_store)

    with pytest.raises(NoFaceDetected) as excinfo:
        await flow.capture(frame)
    assert "clearly visible" in excinfo.value.message
    assert flow.state is EnrollmentState.CAMERA_ACTIVE
    assert flow.descriptor is None

    await flow.capture(frame)
    assert flow.state is EnrollmentState.CAPTURED


async def test_capture_then_submit_registers_and_resets(fake_store, frame):
    descriptor = descriptor_at(0.1)
    flow = EnrollmentFlow(StubExtractor(make_detection(descriptor)), fake_store)

    await flow.capture(frame)
    assert flow.state is EnrollmentState.CAPTURED
    assert fake_store.calls == []

    user = await flow.submit("Jane", "Jane@Example.com")

    assert user.email == "jane@example.com"
    assert user.face_descriptor == descriptor
    assert flow.state is EnrollmentState.IDLE
    assert flow.descriptor is None


async def test_duplicate_email_leaves_no_new_user(fake_store):
    fake_store.add_user("Existing", "jane@example.com", descriptor_at(0.3))
    flow = EnrollmentFlow(StubExtractor(), fake_store)
    flow.hold(descriptor_at(0.1))

    with pytest.raises(DuplicateEmail):
        await flow.submit("Jane", "jane@example.com")

    assert len(fake_store.users) == 1
    # The capture is kept so the user can fix the email and resubmit.
    assert flow.state is EnrollmentState.CAPTURED
    assert flow.descriptor is not None


async def test_other_store_failures_become_registration_failed(fake_store, store_error):
    fake_store.fail_insert_user = store_error
    flow = EnrollmentFlow(StubExtractor(), fake_store)
    flow.hold(descriptor_at(0.1))

    with pytest.raises(RegistrationFailed):
        await flow.submit("Jane", "jane@example.com")


def test_hold_rejects_wrong_length(fake_store):
    flow = EnrollmentFlow(StubExtractor(), fake_store)
    with pytest.raises(InvalidDescriptor):
        flow.hold([0.1] * 64)
    assert flow.state is EnrollmentState.IDLE


async def test_camera_released_after_successful_capture(fake_store):
    camera = FakeCamera()
    flow = EnrollmentFlow(StubExtractor(make_detection(descriptor_at(0.1))), fake_store, camera)

    flow.activate_camera()
    assert flow.camera_open
    await flow.capture()

    assert camera.acquired == 1
    assert camera.open_streams == 0


async def test_camera_released_when_no_face(fake_store):
    camera = FakeCamera()
    flow = EnrollmentFlow(StubExtractor(None), fake_store, camera)

    flow.activate_camera()
    with pytest.raises(NoFaceDetected):
        await flow.capture()

    assert camera.open_streams == 0
    assert flow.state is EnrollmentState.CAMERA_ACTIVE


async def test_camera_released_on_cancel_and_teardown(fake_store):
    camera = FakeCamera()
    flow = EnrollmentFlow(StubExtractor(), fake_store, camera)
    flow.activate_camera()
    flow.cancel()
    assert camera.open_streams == 0
    assert flow.state is EnrollmentState.IDLE

    with EnrollmentFlow(StubExtractor(), fake_store, camera) as other:
        other.activate_camera()
        assert camera.open_streams == 1
    assert camera.open_streams == 0


def test_camera_permission_failure_keeps_flow_idle(fake_store):
    flow = EnrollmentFlow(StubExtractor(), fake_store, FakeCamera(fail=True))
    with pytest.raises(CameraUnavailable):
        flow.activate_camera()
    assert flow.state is EnrollmentState.IDLE
    assert not flow.camera_open


async def test_extractor_crash_is_reported_as_capture_error(fake_store, frame):
    class Broken(StubExtractor):
        def detect(self, frame):
            raise RuntimeError("dlib exploded")

    camera = FakeCamera()
    flow = EnrollmentFlow(Broken(), fake_store, camera)
    flow.activate_camera()
    with pytest.raises(AttendanceError) as excinfo:
        await flow.capture(frame)

    assert "capturing your face" in str(excinfo.value)
    assert camera.open_streams == 0
