from fastapi import APIRouter, Depends, File, UploadFile

from face_attendance.dependencies import get_extractor, get_store
from face_attendance.schemas.user import (
    FaceCaptureResponse,
    RegisterResponse,
    UserCountResponse,
    UserCreate,
    UserRead,
)
from face_attendance.services.enrollment import EnrollmentFlow
from face_attendance.services.extractor import FaceDescriptorExtractor
from face_attendance.services.store import AttendanceStore
from face_attendance.utils.image import decode_image

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/capture", response_model=FaceCaptureResponse)
async def capture_face(
    image: UploadFile = File(...),
    extractor: FaceDescriptorExtractor = Depends(get_extractor),
    store: AttendanceStore = Depends(get_store),
):
    """
    Enrollment step one: turn a camera frame into a face descriptor.

    Nothing is stored; the browser keeps the descriptor and sends it back
    with the registration form.
    """
    frame = decode_image(await image.read())
    with EnrollmentFlow(extractor, store) as flow:
        detection = await flow.capture(frame)

    return FaceCaptureResponse(
        face_descriptor=detection.descriptor,
        bbox=list(detection.bbox),
        message="Face captured successfully! Now submit the form to complete registration.",
    )


@router.post("/register", response_model=RegisterResponse)
async def register_user(
    user_in: UserCreate,
    extractor: FaceDescriptorExtractor = Depends(get_extractor),
    store: AttendanceStore = Depends(get_store),
):
    """Enrollment step two: persist the user with the captured descriptor."""
    with EnrollmentFlow(extractor, store) as flow:
        if user_in.face_descriptor is not None:
            flow.hold(user_in.face_descriptor)
        user = await flow.submit(user_in.name, user_in.email)

    return RegisterResponse(
        user=UserRead.model_validate(user),
        message=f"Registration successful! Welcome, {user.name}!",
    )


@router.get("/count", response_model=UserCountResponse)
async def count_users(store: AttendanceStore = Depends(get_store)):
    return UserCountResponse(total_users=await store.count_users())
