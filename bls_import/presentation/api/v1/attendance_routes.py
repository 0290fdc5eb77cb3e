from fastapi import APIRouter
from bls_import.application.attendance.check_in import verify_check_in
from bls_import.presentation.schemas.attendance_schema import CheckInResult, CheckInVerifyRequest
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check-in/verify", response_model=CheckInResult)
def verify_qr_check_in(request: CheckInVerifyRequest):
    logger.info(f"Verifying QR check-in for course {request.course_id}")
    return verify_check_in(request.qr_data, request.course_id)
