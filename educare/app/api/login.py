"""Sign-in, sign-out and current-identity endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from educare.app.core.errors import OnboardingIncompleteError
from educare.app.db.session import get_db
from educare.app.dependencies.auth import get_current_user
from educare.app.models.user import User
from educare.app.schemas.onboarding import ChangePasswordRequest
from educare.app.schemas.user import LoginRequest, LoginResponse, MeRead
from educare.app.services.authentication import change_password, sign_in, sign_out
from educare.app.services.onboarding import OnboardingState, resolve_onboarding_state

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    result = sign_in(db, credentials.email, credentials.password)
    return LoginResponse(
        access_token=result.access_token,
        role=result.user.role,
        onboarding_state=result.onboarding_state.value,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    sign_out(db, current_user)


@router.get("/me", response_model=MeRead)
def read_me(current_user: User = Depends(get_current_user)):
    return MeRead.model_validate(current_user).model_copy(
        update={"onboarding_state": resolve_onboarding_state(current_user).value}
    )


@router.post("/change-password")
def update_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    state = resolve_onboarding_state(current_user)
    if state is OnboardingState.PENDING_PASSWORD:
        # Provisioned passwords are replaced through the onboarding flow.
        raise OnboardingIncompleteError(state.value)
    activated = change_password(db, current_user, payload)
    return {"status": "ok", "activated_links": activated}
