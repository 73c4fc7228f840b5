"""Authentication dependencies: the single accessor for the current identity."""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from educare.app.core.errors import OnboardingIncompleteError, RoleRequiredError
from educare.app.core.security import decode_access_token
from educare.app.db.session import get_db
from educare.app.models.user import User, UserRole
from educare.app.services.onboarding import OnboardingState, resolve_onboarding_state


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        # Decode and validate JWT to retrieve subject
        payload = decode_access_token(token)
    except ValueError:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user_id_int = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = db.query(User).filter(User.id == user_id_int).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    # Tokens issued before the last sign-out are stale.
    if payload.get("ver", 0) != user.session_version:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(role: UserRole):
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role.value:
            raise RoleRequiredError(role.value)
        return current_user

    return role_checker


def get_current_educator(current_user: User = Depends(require_role(UserRole.EDUCATOR))) -> User:
    return current_user


def get_ready_guardian(current_user: User = Depends(require_role(UserRole.GUARDIAN))) -> User:
    """Guardian who has finished onboarding; portal reads are closed until then."""
    state = resolve_onboarding_state(current_user)
    if state is not OnboardingState.READY:
        raise OnboardingIncompleteError(state.value)
    return current_user
