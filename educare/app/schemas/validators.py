"""Field rules shared by sign-up, onboarding and password change payloads."""

import re

PASSWORD_MIN_LENGTH = 8
# Regional mobile format: leading 0 or +84, a carrier prefix, then eight digits.
PHONE_PATTERN = re.compile(r"^(0|\+84)(3|5|7|8|9)[0-9]{8}$")


def validate_password_strength(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    return value


def normalize_phone(value: str) -> str:
    phone = re.sub(r"\s", "", value or "")
    if not phone:
        raise ValueError("Phone number is required")
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Invalid phone number (10 digits, starting with 0)")
    return phone


def require_name(value: str) -> str:
    name = (value or "").strip()
    if not name:
        raise ValueError("Name is required")
    return name
