import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional

from ...exceptions import (
    DeliveryError,
    InvalidInputError,
    InvalidOTPError,
    RateLimitedError,
    UnauthorizedError,
    UserAlreadyExistsError,
)
from ...utils import generate_session_token, hash_phone_number, normalize_phone_number, phone_lookup_keys, utcnow
from ..ports.audit_logger import AuditLogger
from ..ports.otp_sender import OTPSender
from ..ports.rate_limiter import RateLimiter
from ..ports.session_repo import SessionDto, SessionRepository
from ..ports.user_repo import UserDto, UserRepository
from .otp_service import OTPService

logger = logging.getLogger(__name__)

SESSION_EXPIRY_DAYS = 30
OTP_SENT_MESSAGE = "OTP sent successfully via WhatsApp"

# ---------------------------------------------------------------------------
# Demo numbers: fixed codes that bypass delivery. Only these numbers match;
# disable the whole table with DEMO_OTP_ENABLED=false.
# ---------------------------------------------------------------------------
DEMO_PHONE_OTPS: Dict[str, str] = {
    "9167767684": "2308",
    "9004743487": "1234",
    "9321987654": "5678",
    "8080808080": "2468",
    "9765432109": "1357",
    "8596321470": "7890",
    "9223589450": "1234",
}


@dataclass
class SendOTPResult:
    message: str
    test_mode: bool = False
    otp: Optional[str] = None
    delivery_method: Optional[str] = None
    phone_number: Optional[str] = None
    warning: Optional[str] = None


@dataclass
class VerifiedLogin:
    user: UserDto
    token: str
    session: SessionDto
    verified_via: str


class _NullAudit:
    def log(self, *args, **kwargs) -> None:
        return None


@dataclass
class AuthService:
    user_repo: UserRepository
    session_repo: SessionRepository
    otp_service: OTPService
    otp_sender: OTPSender
    rate_limiter: Optional[RateLimiter] = None
    audit: AuditLogger = field(default_factory=_NullAudit)
    demo_otps: Mapping[str, str] = field(default_factory=lambda: dict(DEMO_PHONE_OTPS))
    session_ttl: timedelta = timedelta(days=SESSION_EXPIRY_DAYS)
    send_max_per_window: int = 5
    send_window_seconds: int = 3600
    clock: Callable[[], datetime] = utcnow

    # ------------------------
    # OTP issuance
    # ------------------------
    def send_otp(self, phone_number: Optional[str]) -> SendOTPResult:
        normalized = normalize_phone_number(phone_number)
        if not phone_number or not normalized:
            raise InvalidInputError("Phone number is required")

        self.otp_service.sweep_expired()

        demo_code = self._demo_code(phone_number)
        if demo_code:
            self.otp_service.store_code(normalized, demo_code)
            logger.info(f"Demo OTP issued for phone {hash_phone_number(normalized)[:12]}")
            self.audit.log("otp_sent", normalized, details={"test_mode": True})
            return SendOTPResult(message=OTP_SENT_MESSAGE, test_mode=True, otp=demo_code)

        if self.rate_limiter is not None and not self.rate_limiter.allow(
            f"send-otp:{normalized}", self.send_max_per_window, self.send_window_seconds
        ):
            logger.warning(f"Rate limit exceeded for OTP send to phone {hash_phone_number(normalized)[:12]}")
            self.audit.log("otp_sent", normalized, success=False, details={"reason": "rate_limited"})
            raise RateLimitedError()

        code = self.otp_service.generate()
        self.otp_service.store_code(normalized, code)

        channel = getattr(self.otp_sender, "channel", "whatsapp")
        try:
            delivery = self.otp_sender.send(phone_number, code)
        except DeliveryError as exc:
            # Account creation must not depend on the delivery provider
            logger.error(f"OTP delivery failed for phone {hash_phone_number(normalized)[:12]}: {exc.message}")
            self.audit.log("otp_delivery_failed", normalized, success=False, details={"channel": channel})
            self.resolve_user(phone_number)
            return SendOTPResult(
                message=OTP_SENT_MESSAGE,
                delivery_method=channel,
                warning="WhatsApp delivery may be delayed",
            )

        user = self.resolve_user(phone_number)
        self.audit.log("otp_sent", normalized, user_id=user.id, details={"channel": delivery.channel})
        return SendOTPResult(
            message=OTP_SENT_MESSAGE,
            delivery_method=delivery.channel,
            phone_number=delivery.phone_number,
        )

    # ------------------------
    # OTP verification
    # ------------------------
    def verify_otp(self, phone_number: Optional[str], otp) -> VerifiedLogin:
        normalized = normalize_phone_number(phone_number)
        candidate = str(otp if otp is not None else "").strip()
        if not phone_number or not normalized or not candidate:
            raise InvalidInputError("Phone number and OTP are required")

        demo_code = self._demo_code(phone_number)
        if demo_code and candidate == demo_code:
            verified_via = "demo"
        elif self.otp_service.verify_any(phone_lookup_keys(phone_number), candidate):
            verified_via = getattr(self.otp_sender, "channel", "whatsapp")
        else:
            self.audit.log("otp_rejected", normalized, success=False)
            raise InvalidOTPError()

        user = self.resolve_user(phone_number)
        token = generate_session_token()
        session = self.session_repo.create(user.id, token, self.clock() + self.session_ttl)
        self.audit.log("otp_verified", normalized, user_id=user.id, details={"verified_via": verified_via})
        self.audit.log("session_created", normalized, user_id=user.id, details={"session_id": session.id})
        return VerifiedLogin(user=user, token=token, session=session, verified_via=verified_via)

    # ------------------------
    # Users
    # ------------------------
    def resolve_user(self, phone_number: str) -> UserDto:
        """Find the user by normalized then raw phone, creating it if absent."""
        user = self._find_user(phone_number)
        if user:
            return user
        normalized = normalize_phone_number(phone_number)
        try:
            user = self.user_repo.create(normalized)
            logger.info(f"Created user {user.id}")
            return user
        except UserAlreadyExistsError:
            # Lost a concurrent create; the winner's row is the account
            user = self._find_user(phone_number)
            if user is None:
                raise
            return user

    def _find_user(self, phone_number: str) -> Optional[UserDto]:
        for key in phone_lookup_keys(phone_number):
            user = self.user_repo.get_by_phone(key)
            if user:
                return user
        return None

    def _demo_code(self, phone_number: str) -> Optional[str]:
        for key in phone_lookup_keys(phone_number):
            code = self.demo_otps.get(key)
            if code:
                return code
        return None

    # ------------------------
    # Sessions
    # ------------------------
    def verify_session(self, token: Optional[str]) -> SessionDto:
        if not token:
            raise UnauthorizedError("No token provided")
        session = self.session_repo.get_active(token, self.clock())
        if session is None:
            raise UnauthorizedError("Invalid or expired token")
        return session

    def logout(self, token: Optional[str]) -> None:
        if not token:
            return
        removed = self.session_repo.delete(token)
        if removed:
            self.audit.log("logout", None, details={"sessions_removed": removed})
