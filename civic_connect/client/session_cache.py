"""Client-side session cache.

Keeps the bearer token in a :class:`TokenStorage` and mirrors the signed-in
user, session, language and profile so an app can route without asking the
server on every screen. ``restore()`` re-synchronizes all of it on launch.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from pydantic.alias_generators import to_snake

from ..application.ports.user_repo import PROFILE_FIELDS
from ..application.services.profile_service import is_profile_complete, to_profile_projection
from ..schemas.users.user import ProfileProjection
from .storage import MemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("CIVIC_CONNECT_API_URL", "http://localhost:3001/api")
TOKEN_KEY = "auth_token"
DEFAULT_LANGUAGE = "en"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


@dataclass
class VerifyOTPResult:
    success: bool
    has_language: bool = False
    has_role: bool = False
    profile_complete: bool = False


@dataclass
class LoadedProfile:
    user: Optional[Dict[str, Any]]
    profile: Optional[ProfileProjection]
    profile_complete: bool


def to_api_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase or snake_case profile keys onto API column names."""
    payload = {}
    for key, value in fields.items():
        column = key if key in PROFILE_FIELDS else to_snake(key)
        if column not in PROFILE_FIELDS:
            raise TypeError(f"Unknown profile field: {key}")
        payload[column] = value
    return payload


class SessionCache:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        storage: Optional[TokenStorage] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.storage = storage or MemoryTokenStorage()
        self.http = http_client or httpx.Client(timeout=timeout)

        self.user: Optional[Dict[str, Any]] = None
        self.session: Optional[Dict[str, Any]] = None
        self.language: Optional[str] = None
        self.profile: Optional[ProfileProjection] = None
        self.profile_complete = False
        self.loading = True

    @property
    def effective_language(self) -> str:
        return self.language or DEFAULT_LANGUAGE

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    # ------------------------
    # HTTP
    # ------------------------
    def _api_call(self, method: str, endpoint: str, token: Optional[str] = None, json: Any = None) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = self.http.request(method, f"{self.base_url}{endpoint}", headers=headers, json=json)
        if response.is_error:
            try:
                message = response.json().get("error")
            except ValueError:
                message = None
            raise ApiError(response.status_code, message or f"HTTP error! status: {response.status_code}")
        return response.json()

    # ------------------------
    # Launch
    # ------------------------
    def restore(self) -> bool:
        """Re-validate a stored token and reload the profile. Returns True when signed in."""
        try:
            token = self.token
            if not token:
                return False
            data = self._api_call("GET", "/auth/verify-session", token=token)
            if data.get("success") and data.get("session"):
                self.session = data["session"]
                self.load_user_profile(token)
                return True
            return False
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error checking existing session: {e}")
            self.storage.remove_item(TOKEN_KEY)
            return False
        finally:
            self.loading = False

    # ------------------------
    # Sign in
    # ------------------------
    def sign_in_with_phone(self, phone_number: str) -> Dict[str, Any]:
        return self._api_call("POST", "/auth/send-otp", json={"phoneNumber": phone_number})

    def verify_otp(self, phone_number: str, otp: str) -> VerifyOTPResult:
        try:
            data = self._api_call("POST", "/auth/verify-otp", json={"phoneNumber": phone_number, "otp": otp})
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error verifying OTP: {e}")
            return VerifyOTPResult(success=False)
        if not data.get("success"):
            logger.warning("OTP verification failed")
            return VerifyOTPResult(success=False)

        token = data["token"]
        self.storage.set_item(TOKEN_KEY, token)
        self.session = data.get("session")
        self.user = data.get("user")
        self.language = (self.user or {}).get("language")

        loaded = self.load_user_profile(token)
        if loaded is not None:
            profile = loaded.profile
            complete = loaded.profile_complete
            has_language = bool(self.language or (loaded.user or {}).get("language"))
        else:
            profile = to_profile_projection(self.user)
            complete = is_profile_complete(profile)
            has_language = bool(self.language)
        return VerifyOTPResult(
            success=True,
            has_language=has_language,
            has_role=bool(profile and profile.role),
            profile_complete=complete,
        )

    # ------------------------
    # Profile
    # ------------------------
    def load_user_profile(self, token: str) -> Optional[LoadedProfile]:
        try:
            data = self._api_call("GET", "/users/profile", token=token)
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error loading user profile: {e}")
            self.profile = None
            self.profile_complete = False
            return None

        user = data.get("user") if data.get("success") else None
        if user:
            self.user = user
            self.language = user.get("language")

        # Prefer the server's projection and completeness flag
        if data.get("profile") is not None:
            profile = ProfileProjection.model_validate(data["profile"])
        else:
            profile = to_profile_projection(user)
        complete = data.get("profileComplete", data.get("profile_complete"))
        if complete is None:
            complete = is_profile_complete(profile)

        self.profile = profile
        self.profile_complete = bool(complete)
        return LoadedProfile(user=user, profile=profile, profile_complete=self.profile_complete)

    def update_profile(self, **fields: Any) -> Optional[ProfileProjection]:
        token = self.token
        if not token:
            raise ApiError(401, "Not authenticated")
        data = self._api_call("PUT", "/users/profile", token=token, json=to_api_fields(fields))
        if data.get("user"):
            self.user = data["user"]
        if data.get("profile") is not None:
            self.profile = ProfileProjection.model_validate(data["profile"])
        else:
            self.profile = to_profile_projection(data.get("user"))
        self.profile_complete = is_profile_complete(self.profile)
        return self.profile

    def set_language(self, language: str) -> None:
        self.language = language
        if not self.user:
            return
        token = self.token
        if not token:
            return
        try:
            self._api_call("PUT", "/users/language", token=token, json={"language": language})
            self.user = {**self.user, "language": language}
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error updating user language: {e}")

    # ------------------------
    # Sign out
    # ------------------------
    def sign_out(self) -> None:
        try:
            token = self.token
            if token:
                self._api_call("POST", "/auth/logout", token=token)
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error signing out: {e}")
        finally:
            self.storage.remove_item(TOKEN_KEY)
            self.user = None
            self.session = None
            self.language = None
            self.profile = None
            self.profile_complete = False
