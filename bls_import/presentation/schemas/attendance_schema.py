from pydantic import BaseModel, Field
from typing import Optional


class CheckInPayload(BaseModel):
    """Body of the attendance QR code, keyed the way the mobile client writes it."""

    course_id: str = Field(alias="courseId")
    participant_id: str = Field(alias="participantId")
    timestamp: float

    class Config:
        populate_by_name = True


class CheckInVerifyRequest(BaseModel):
    qr_data: str
    course_id: str


class CheckInResult(BaseModel):
    accepted: bool
    participant_id: Optional[str] = None
    message: str
