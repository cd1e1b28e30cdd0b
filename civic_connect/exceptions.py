import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AppError):
    status_code = 400
    default_message = "Invalid input"


class InvalidOTPError(AppError):
    # Same message for wrong, expired and unknown codes
    status_code = 400
    default_message = "Invalid or expired OTP"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Invalid or expired token"


class NotFoundError(AppError):
    status_code = 404
    default_message = "User not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflicts with an existing record"


class RateLimitedError(AppError):
    status_code = 429
    default_message = "Too many OTP requests. Please try again later."


class DeliveryError(AppError):
    """The OTP delivery channel failed. Recovered inside the auth flow."""

    status_code = 502
    default_message = "OTP delivery failed"


class UserAlreadyExistsError(AppError):
    """A concurrent create won the unique phone_number constraint."""

    status_code = 409
    default_message = "User already exists"


def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "error": error_message,
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content=create_error_response("Invalid request body"),
    )
