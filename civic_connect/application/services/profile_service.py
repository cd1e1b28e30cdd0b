import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from ...exceptions import InvalidInputError, NotFoundError
from ...schemas.users.user import ProfileProjection
from ...utils import format_date_of_birth, parse_date_of_birth
from ..ports.user_repo import PROFILE_FIELDS, UserDto, UserRepository

logger = logging.getLogger(__name__)

# All must be filled before onboarding is done
REQUIRED_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "date_of_birth",
    "email",
    "state",
    "district",
    "taluka",
    "role",
)


def to_profile_projection(record: Union[UserDto, Mapping[str, Any], None]) -> Optional[ProfileProjection]:
    """Map a user record (DTO, ORM row or snake_case dict) onto the profile view."""
    if record is None:
        return None
    if isinstance(record, Mapping):
        get = record.get
    else:
        def get(name):
            return getattr(record, name, None)

    values = {name: get(name) for name in PROFILE_FIELDS}
    values["date_of_birth"] = format_date_of_birth(values["date_of_birth"])
    return ProfileProjection(**values)


def is_profile_complete(profile: Optional[ProfileProjection]) -> bool:
    if profile is None:
        return False
    return all(getattr(profile, name) for name in REQUIRED_PROFILE_FIELDS)


@dataclass
class ProfileView:
    user: UserDto
    profile: ProfileProjection
    profile_complete: bool


@dataclass
class ProfileService:
    user_repo: UserRepository

    def get_profile(self, user_id: str) -> ProfileView:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return self._view(user)

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> ProfileView:
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        if "date_of_birth" in values:
            try:
                values["date_of_birth"] = parse_date_of_birth(values["date_of_birth"])
            except ValueError:
                raise InvalidInputError("Invalid date_of_birth format. Use YYYY-MM-DD")
        for key, value in values.items():
            # Blank strings clear the column like an explicit null
            if isinstance(value, str):
                values[key] = value.strip() or None

        logger.info(f"Updating profile for user {user_id}: {sorted(values)}")
        user = self.user_repo.update_fields(user_id, values)
        if not user:
            raise NotFoundError("User not found")
        return self._view(user)

    def update_language(self, user_id: str, language: Optional[str]) -> None:
        language = (language or "").strip()
        if not language:
            raise InvalidInputError("Language is required")
        if not self.user_repo.update_language(user_id, language):
            raise NotFoundError("User not found")

    def _view(self, user: UserDto) -> ProfileView:
        profile = to_profile_projection(user)
        return ProfileView(user=user, profile=profile, profile_complete=is_profile_complete(profile))
