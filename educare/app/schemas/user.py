"""User schemas used for registration, sign-in and responses."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from educare.app.schemas.validators import normalize_phone, validate_password_strength


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    role: Literal["educator", "guardian"] = "educator"
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @field_validator("phone")
    @classmethod
    def _phone_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return normalize_phone(value)


class UserRead(BaseModel):
    id: int
    email: EmailStr
    role: str
    email_verified: bool

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    """Payload for sign-in attempts."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    onboarding_state: str


class EmailVerificationRequest(BaseModel):
    token: str


class MeRead(BaseModel):
    id: int
    email: EmailStr
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    occupation: Optional[str] = None
    address: Optional[str] = None
    must_change_password: bool
    onboarding_state: Optional[str] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
