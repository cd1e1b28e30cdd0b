import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..application.services.auth_service import AuthService
from ..exceptions import AppError
from ..schemas import (
    SendOTPRequest, SendOTPResponse, SessionResponse, SuccessResponse,
    UserResponse, VerifyOTPRequest, VerifyOTPResponse, VerifySessionResponse,
)
from .deps import extract_bearer_token, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/send-otp", response_model=SendOTPResponse, response_model_exclude_none=True)
def send_otp(payload: SendOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Issue an OTP for a phone number and make sure the account exists
    """
    try:
        result = auth_service.send_otp(payload.phoneNumber)
    except AppError:
        raise
    except Exception:
        logger.exception("Error sending OTP")
        raise HTTPException(status_code=500, detail="Failed to send OTP")

    return SendOTPResponse(
        message=result.message,
        testMode=result.test_mode or None,
        otp=result.otp,
        deliveryMethod=result.delivery_method,
        phoneNumber=result.phone_number,
        warning=result.warning,
    )


@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(payload: VerifyOTPRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Verify an OTP and open a 30 day session
    """
    try:
        login = auth_service.verify_otp(payload.phoneNumber, payload.otp)
    except AppError:
        raise
    except Exception:
        logger.exception("Error verifying OTP")
        raise HTTPException(status_code=500, detail="Failed to verify OTP")

    return VerifyOTPResponse(
        user=UserResponse.model_validate(login.user),
        token=login.token,
        session=SessionResponse.model_validate(login.session),
        verifiedVia=login.verified_via,
    )


@router.get("/verify-session", response_model=VerifySessionResponse)
def verify_session(request: Request, auth_service: AuthService = Depends(get_auth_service)):
    try:
        session = auth_service.verify_session(extract_bearer_token(request))
    except AppError:
        raise
    except Exception:
        logger.exception("Error verifying session")
        raise HTTPException(status_code=500, detail="Failed to verify session")
    return VerifySessionResponse(session=SessionResponse.model_validate(session))


@router.post("/logout", response_model=SuccessResponse)
def logout(request: Request, auth_service: AuthService = Depends(get_auth_service)):
    try:
        auth_service.logout(extract_bearer_token(request))
    except Exception:
        logger.exception("Error logging out")
        raise HTTPException(status_code=500, detail="Failed to logout")
    return SuccessResponse(message="Logged out successfully")
