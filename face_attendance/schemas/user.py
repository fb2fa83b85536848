import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# --- Base Schema (Shared properties) ---
class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Jane Doe"])
    email: EmailStr = Field(..., examples=["jane@example.com"])


# --- Create Schema (Input) ---
class UserCreate(UserBase):
    # Held by the browser between /users/capture and /users/register.
    # Left optional so a missing capture reaches the enrollment flow and is
    # reported as missing_face_capture rather than a schema error.
    face_descriptor: Optional[List[float]] = Field(
        None, min_length=128, max_length=128, description="128-dim face descriptor"
    )


# --- Read Schema (Output) ---
class UserRead(UserBase):
    id: uuid.UUID
    created_at: datetime
    enrolled: bool = False

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class FaceCaptureResponse(BaseModel):
    face_descriptor: List[float] = Field(..., min_length=128, max_length=128)
    bbox: List[int] = Field(..., description="[top, right, bottom, left]")
    message: str


class RegisterResponse(BaseModel):
    user: UserRead
    message: str


class UserCountResponse(BaseModel):
    total_users: int
