from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pm_api.deps import get_db
from pm_api.models.auth import SendOtpRequest, VerificationTokenResponse, VerifyOtpRequest
from pm_api.models.common import ApiResponse, success
from pm_api.services import otp_service
from pm_api.services.otp_service import OtpSender, get_otp_sender
from pm_api.services.token_service import TokenService, get_token_service

router = APIRouter(prefix="/api/email", tags=["email"])


@router.post("/otp/send", response_model=ApiResponse, summary="Send a password-reset OTP")
def send_otp(
    req: SendOtpRequest,
    db: Session = Depends(get_db),
    sender: OtpSender = Depends(get_otp_sender),
):
    otp_service.send_otp(db, sender, req.email)
    return success(message="OTP sent successfully")


@router.post("/otp/verify", response_model=ApiResponse, summary="Exchange an OTP for a verification token")
def verify_otp(
    req: VerifyOtpRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    token = otp_service.verify_otp(db, tokens, req.email, req.otp)
    return success(VerificationTokenResponse(token=token), "OTP verified successfully")
