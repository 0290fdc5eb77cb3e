import json
import logging
import time
from typing import Optional

from pydantic import ValidationError

from bls_import.presentation.schemas.attendance_schema import CheckInPayload, CheckInResult

logger = logging.getLogger(__name__)

UNREADABLE_MESSAGE = "Unable to read QR code data."
WRONG_COURSE_MESSAGE = "This QR code is not for the selected course."
ACCEPTED_MESSAGE = "Attendance marked successfully!"


def build_check_in_payload(course_id: str, participant_id: str, timestamp: Optional[int] = None) -> str:
    """JSON text encoded into a participant's check-in QR code. Timestamp is epoch milliseconds."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    payload = CheckInPayload(courseId=course_id, participantId=participant_id, timestamp=timestamp)
    return json.dumps(payload.model_dump(by_alias=True))


def verify_check_in(raw: str, selected_course_id: str) -> CheckInResult:
    try:
        payload = CheckInPayload.model_validate(json.loads(raw))
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Rejected unreadable check-in payload: {e}")
        return CheckInResult(accepted=False, message=UNREADABLE_MESSAGE)

    if payload.course_id != selected_course_id:
        logger.info(
            f"Rejected check-in for participant {payload.participant_id}: "
            f"course {payload.course_id} is not {selected_course_id}"
        )
        return CheckInResult(accepted=False, participant_id=payload.participant_id, message=WRONG_COURSE_MESSAGE)

    logger.info(f"Accepted check-in for participant {payload.participant_id} in course {selected_course_id}")
    return CheckInResult(accepted=True, participant_id=payload.participant_id, message=ACCEPTED_MESSAGE)
