# civic_connect/db/models/users/user.py
from typing import Optional, List
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from datetime import date, datetime
import uuid

from ....utils import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    phone_number: str = Field(max_length=15, unique=True, index=True)
    language: Optional[str] = Field(max_length=10, default=None)
    prefix: Optional[str] = Field(max_length=10, default=None)
    first_name: Optional[str] = Field(max_length=120, default=None)
    middle_name: Optional[str] = Field(max_length=120, default=None)
    last_name: Optional[str] = Field(max_length=120, default=None)
    date_of_birth: Optional[date] = Field(default=None)
    email: Optional[str] = Field(max_length=255, default=None, unique=True)
    address_line: Optional[str] = Field(default=None)
    state: Optional[str] = Field(max_length=120, default=None)
    district: Optional[str] = Field(max_length=120, default=None)
    taluka: Optional[str] = Field(max_length=120, default=None)
    role: Optional[str] = Field(max_length=60, default=None)
    political_party: Optional[str] = Field(max_length=120, default=None)
    instagram_url: Optional[str] = Field(default=None)
    facebook_url: Optional[str] = Field(default=None)
    twitter_url: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    # Relationships
    sessions: List["UserSession"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
