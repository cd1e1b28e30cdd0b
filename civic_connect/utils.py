import hashlib
import re
import secrets
import string
import time
from datetime import date, datetime, timezone
from typing import List, Optional, Union

_NON_DIGITS = re.compile(r"\D")
_BASE36 = string.digits + string.ascii_lowercase


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp; every stored datetime is UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive value read back from a backend that drops the offset (SQLite)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# =========================
# Phone numbers
# =========================
def normalize_phone_number(phone_number: Optional[str]) -> str:
    """Strip non-digits and keep the trailing 10 digits (drops country codes)."""
    digits_only = _NON_DIGITS.sub("", str(phone_number or ""))
    if len(digits_only) > 10:
        return digits_only[-10:]
    return digits_only


def phone_lookup_keys(phone_number: Optional[str]) -> List[str]:
    """Keys to try for any phone-gated lookup: normalized first, then raw."""
    keys = []
    for key in (normalize_phone_number(phone_number), phone_number or ""):
        if key and key not in keys:
            keys.append(key)
    return keys


def hash_phone_number(phone: str) -> str:
    """Hash phone number for security (one-way hash)"""
    return hashlib.sha256((phone or "").encode()).hexdigest()


# =========================
# Session tokens
# =========================
def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def generate_session_token() -> str:
    """Opaque bearer token: CSPRNG bytes plus a millisecond timestamp suffix."""
    return secrets.token_urlsafe(32) + _to_base36(int(time.time() * 1000))


# =========================
# Date of birth
# =========================
def format_date_of_birth(value: Union[date, datetime, str, None]) -> Optional[str]:
    """Render a date of birth as YYYY-MM-DD.

    Temporal values use their own calendar fields, never a UTC conversion,
    so a midnight timestamp cannot slide to the previous day. Strings lose
    any time suffix.
    """
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    text = str(value).strip()
    if not text:
        return None
    return re.split(r"[T ]", text, maxsplit=1)[0]


def parse_date_of_birth(value: Union[date, datetime, str, None]) -> Optional[date]:
    """Parse user input into a calendar date. Raises ValueError on bad input."""
    formatted = format_date_of_birth(value)
    if formatted is None:
        return None
    return datetime.strptime(formatted, "%Y-%m-%d").date()
