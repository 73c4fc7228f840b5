"""
Domain errors for the EduCare Connect API.

HTTP-facing errors subclass HTTPException and carry a stable ``error_code`` so
clients can branch on the condition (for example, an unverified email must not
be shown as a wrong password). Errors raised below the HTTP layer (activation,
permission resolution) are plain exceptions handled by their callers.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class EducareAPIException(HTTPException):
    """Base class for API errors with a machine-readable code."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str,
        headers: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}


class InvalidCredentialsError(EducareAPIException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
        )


class EmailNotVerifiedError(EducareAPIException):
    """Correct credentials, but the account's email address is not confirmed yet."""

    def __init__(self, email: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address has not been verified",
            error_code="EMAIL_NOT_VERIFIED",
            extra={"email": email},
        )


class InactiveAccountError(EducareAPIException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is inactive",
            error_code="ACCOUNT_INACTIVE",
        )


class EmailAlreadyRegisteredError(EducareAPIException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
            error_code="EMAIL_ALREADY_REGISTERED",
        )


class RoleRequiredError(EducareAPIException):
    def __init__(self, role: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Requires {role} role",
            error_code="ROLE_REQUIRED",
            extra={"role": role},
        )


class OnboardingIncompleteError(EducareAPIException):
    def __init__(self, state: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Onboarding must be completed first",
            error_code="ONBOARDING_INCOMPLETE",
            extra={"onboarding_state": state},
        )


class OnboardingTransitionError(EducareAPIException):
    def __init__(self, current: str, target: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move from {current} to {target}",
            error_code="INVALID_ONBOARDING_TRANSITION",
            extra={"current": current, "target": target},
        )


class StudentNotFoundError(EducareAPIException):
    def __init__(self, student_id: int):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found",
            error_code="STUDENT_NOT_FOUND",
            extra={"student_id": student_id},
        )


class GuardianLinkNotFoundError(EducareAPIException):
    def __init__(self, link_id: int):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Guardian link not found",
            error_code="GUARDIAN_LINK_NOT_FOUND",
            extra={"link_id": link_id},
        )


class GuardianLinkConflictError(EducareAPIException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="GUARDIAN_LINK_CONFLICT",
        )


class PermissionsUnavailableError(EducareAPIException):
    def __init__(self, student_id: int):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Permissions could not be resolved",
            error_code="PERMISSIONS_UNAVAILABLE",
            extra={"student_id": student_id},
        )


class MessagingNotPermittedError(EducareAPIException):
    def __init__(self, student_id: int):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Messaging the educator is not enabled for this student",
            error_code="MESSAGING_NOT_PERMITTED",
            extra={"student_id": student_id},
        )


class ActivationError(Exception):
    """The link store could not complete an activation pass."""


class PermissionResolutionError(Exception):
    """The link store could not be read while resolving a permission snapshot."""


async def educare_exception_handler(request: Request, exc: EducareAPIException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
        headers=exc.headers,
    )
