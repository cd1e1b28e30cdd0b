from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Any, Dict, Optional, Protocol

# Columns a profile update may touch
PROFILE_FIELDS = (
    "prefix",
    "first_name",
    "middle_name",
    "last_name",
    "date_of_birth",
    "email",
    "address_line",
    "state",
    "district",
    "taluka",
    "role",
    "political_party",
    "instagram_url",
    "facebook_url",
    "twitter_url",
    "avatar_url",
)


@dataclass
class UserDto:
    id: str
    phone_number: str
    created_at: datetime
    updated_at: datetime
    language: Optional[str] = None
    prefix: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    address_line: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    taluka: Optional[str] = None
    role: Optional[str] = None
    political_party: Optional[str] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    twitter_url: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_record(cls, record: Any) -> "UserDto":
        return cls(**{f.name: getattr(record, f.name, None) for f in fields(cls)})


class UserRepository(Protocol):
    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def create(self, phone_number: str) -> UserDto:
        """Insert a user. Raises UserAlreadyExistsError if the phone is taken."""
        ...

    def update_fields(self, user_id: str, values: Dict[str, Any]) -> Optional[UserDto]:
        """Apply a sparse update. Returns None when the user does not exist."""
        ...

    def update_language(self, user_id: str, language: str) -> bool:
        ...
