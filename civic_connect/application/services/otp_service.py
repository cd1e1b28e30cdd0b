import logging
import secrets
import string
import time
from typing import Callable, Iterable

from ..ports.otp_store import OTPEntry, OTPStore

logger = logging.getLogger(__name__)

DEFAULT_OTP_TTL_SECONDS = 300
DEFAULT_OTP_LENGTH = 6


class OTPService:
    """Issues and checks one-time codes on top of an OTPStore.

    Expiry is evaluated lazily against ``issued_at``; nothing runs in the
    background. A code that verifies successfully is consumed.
    """

    def __init__(
        self,
        store: OTPStore,
        ttl_seconds: int = DEFAULT_OTP_TTL_SECONDS,
        length: int = DEFAULT_OTP_LENGTH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.length = length
        self._clock = clock

    def generate(self) -> str:
        return "".join(secrets.choice(string.digits) for _ in range(self.length))

    def store_code(self, key: str, code: str) -> None:
        # Overwrites any earlier code for this key
        self.store.put(key, OTPEntry(code=code, issued_at=self._clock()))

    def verify(self, key: str, candidate: str) -> bool:
        return self.store.consume(key, (candidate or "").strip(), self._clock() - self.ttl_seconds)

    def verify_any(self, keys: Iterable[str], candidate: str) -> bool:
        return any(self.verify(key, candidate) for key in keys)

    def sweep_expired(self) -> int:
        removed = self.store.sweep(self._clock() - self.ttl_seconds)
        if removed:
            logger.debug(f"Swept {removed} expired OTP entries")
        return removed
