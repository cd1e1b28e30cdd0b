# civic_connect/schemas/users/user.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import date, datetime

from ...utils import format_date_of_birth


class UserResponse(BaseModel):
    id: str
    phone_number: str
    language: Optional[str] = None
    prefix: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
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
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def format_dob(cls, v):
        return format_date_of_birth(v)


class ProfileProjection(BaseModel):
    """Client-facing profile view; serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prefix: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
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


class UpdateProfileRequest(BaseModel):
    """Sparse update: only keys present in the body are applied."""

    prefix: Optional[str] = Field(None, max_length=10)
    first_name: Optional[str] = Field(None, max_length=120)
    middle_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)
    date_of_birth: Optional[str] = Field(None, description="Date of birth in YYYY-MM-DD format")
    email: Optional[str] = Field(None, max_length=255)
    address_line: Optional[str] = None
    state: Optional[str] = Field(None, max_length=120)
    district: Optional[str] = Field(None, max_length=120)
    taluka: Optional[str] = Field(None, max_length=120)
    role: Optional[str] = Field(None, max_length=60)
    political_party: Optional[str] = Field(None, max_length=120)
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    twitter_url: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def coerce_dob(cls, v):
        if isinstance(v, (date, datetime)):
            return format_date_of_birth(v)
        return v


class ProfileResponse(BaseModel):
    success: bool = True
    user: UserResponse
    profile: ProfileProjection
    profileComplete: bool


class LanguageRequest(BaseModel):
    language: Optional[str] = None
