from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from educare.app.schemas.validators import normalize_phone, require_name, validate_password_strength


class ProfileFields(BaseModel):
    first_name: str
    last_name: str
    phone: str

    @field_validator("first_name", "last_name")
    @classmethod
    def _names_required(cls, value: str) -> str:
        return require_name(value)

    @field_validator("phone")
    @classmethod
    def _phone_pattern(cls, value: str) -> str:
        return normalize_phone(value)


class PasswordReplacementRequest(ProfileFields):
    """Forced first-login submission: new password plus mandatory profile fields."""

    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class ProfileCompletionRequest(ProfileFields):
    occupation: Optional[str] = None
    address: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class OnboardingStatusRead(BaseModel):
    state: str
    role: str
    must_change_password: bool
    activated_links: int = 0
