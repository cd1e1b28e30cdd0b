# civic_connect/schemas/auth/auth.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Union
from datetime import datetime

from ..users.user import UserResponse


def _phone_to_str(v):
    # Some clients post the number as a JSON number
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


class SendOTPRequest(BaseModel):
    phoneNumber: Optional[str] = Field(None, description="Phone number, any format; last 10 digits are used")

    @field_validator("phoneNumber", mode="before")
    @classmethod
    def coerce_phone(cls, v):
        return _phone_to_str(v)


class SendOTPResponse(BaseModel):
    success: bool = True
    message: str
    testMode: Optional[bool] = None
    otp: Optional[str] = None
    deliveryMethod: Optional[str] = None
    phoneNumber: Optional[str] = None
    warning: Optional[str] = None


class VerifyOTPRequest(BaseModel):
    phoneNumber: Optional[str] = None
    # Mobile clients sometimes post the code as a number
    otp: Optional[Union[str, int]] = None

    @field_validator("phoneNumber", mode="before")
    @classmethod
    def coerce_phone(cls, v):
        return _phone_to_str(v)


class SessionResponse(BaseModel):
    id: str
    user_id: str
    token: str
    expires_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VerifyOTPResponse(BaseModel):
    success: bool = True
    user: UserResponse
    token: str
    session: SessionResponse
    verifiedVia: str


class VerifySessionResponse(BaseModel):
    success: bool = True
    session: SessionResponse
