import logging
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session

from ..application.ports.audit_logger import AuditLogger
from ..application.ports.otp_sender import OTPSender
from ..application.ports.rate_limiter import RateLimiter
from ..application.ports.session_repo import SessionDto
from ..application.services.auth_service import DEMO_PHONE_OTPS, AuthService
from ..application.services.otp_service import OTPService
from ..application.services.profile_service import ProfileService
from ..config import settings
from ..database import get_session
from ..infrastructure.audit.std_logger import StdAuditLogger
from ..infrastructure.otp.logging_sender import LoggingOTPSender
from ..infrastructure.otp.memory_otp_store import InMemoryOTPStore
from ..infrastructure.otp.redis_otp_store import RedisOTPStore
from ..infrastructure.otp.twilio_sender import TwilioOTPSender
from ..infrastructure.persistence.sqlalchemy.repositories.session_repository_sql import SqlSessionRepository
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from ..infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter

logger = logging.getLogger(__name__)


# ------------------------
# Process-wide singletons
# ------------------------
@lru_cache()
def get_otp_service() -> OTPService:
    if settings.OTP_STORE_BACKEND == "redis" and settings.REDIS_URL:
        store = RedisOTPStore(settings.REDIS_URL, ttl_seconds=settings.OTP_TTL_SECONDS)
        logger.info("Using Redis OTP store")
    else:
        store = InMemoryOTPStore()
        logger.info("Using in-memory OTP store")
    return OTPService(store, ttl_seconds=settings.OTP_TTL_SECONDS, length=settings.OTP_LENGTH)


@lru_cache()
def get_otp_sender() -> OTPSender:
    channel = settings.OTP_DELIVERY_CHANNEL
    if channel in ("whatsapp", "sms") and settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
        return TwilioOTPSender(channel=channel)
    if channel != "log":
        logger.warning(f"Twilio credentials missing; OTP channel '{channel}' falls back to log delivery")
    return LoggingOTPSender()


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    if settings.RATE_LIMIT_BACKEND == "redis" and settings.REDIS_URL:
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


@lru_cache()
def get_audit_logger() -> AuditLogger:
    return StdAuditLogger()


# ------------------------
# Per-request services
# ------------------------
def get_auth_service(
    session: Session = Depends(get_session),
    otp_service: OTPService = Depends(get_otp_service),
    otp_sender: OTPSender = Depends(get_otp_sender),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuthService:
    return AuthService(
        user_repo=SqlUserRepository(session),
        session_repo=SqlSessionRepository(session),
        otp_service=otp_service,
        otp_sender=otp_sender,
        rate_limiter=rate_limiter,
        audit=audit,
        demo_otps=dict(DEMO_PHONE_OTPS) if settings.DEMO_OTP_ENABLED else {},
        session_ttl=timedelta(days=settings.SESSION_EXPIRY_DAYS),
        send_max_per_window=settings.OTP_SEND_MAX_PER_WINDOW,
        send_window_seconds=settings.OTP_SEND_WINDOW_SECONDS,
    )


def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(user_repo=SqlUserRepository(session))


def extract_bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization") or ""
    if auth_header[:7].lower() == "bearer ":
        auth_header = auth_header[7:]
    return auth_header.strip() or None


def get_current_session(request: Request, auth_service: AuthService = Depends(get_auth_service)) -> SessionDto:
    """Resolve the bearer token to a live session or raise UnauthorizedError."""
    return auth_service.verify_session(extract_bearer_token(request))
