"""Forced password replacement and profile completion for newly provisioned guardians."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from educare.app.db.session import get_db
from educare.app.dependencies.auth import get_current_user
from educare.app.models.user import User
from educare.app.schemas.onboarding import OnboardingStatusRead, PasswordReplacementRequest, ProfileCompletionRequest
from educare.app.services.onboarding import (
    OnboardingResult,
    complete_password_replacement,
    complete_profile,
    resolve_onboarding_state,
)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def _status(user: User, result: OnboardingResult | None = None) -> OnboardingStatusRead:
    return OnboardingStatusRead(
        state=(result.state if result else resolve_onboarding_state(user)).value,
        role=user.role,
        must_change_password=user.must_change_password,
        activated_links=result.activated_links if result else 0,
    )


@router.get("/status", response_model=OnboardingStatusRead)
def onboarding_status(current_user: User = Depends(get_current_user)):
    return _status(current_user)


@router.post("/password", response_model=OnboardingStatusRead)
def replace_password(
    payload: PasswordReplacementRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = complete_password_replacement(db, current_user, payload)
    return _status(current_user, result)


@router.post("/profile", response_model=OnboardingStatusRead)
def finish_profile(
    payload: ProfileCompletionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = complete_profile(db, current_user, payload)
    return _status(current_user, result)
