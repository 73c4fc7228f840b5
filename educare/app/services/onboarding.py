"""
Onboarding flow for a signed-in identity.

The state is derived from the identity record on every request rather than
stored, so the flow resumes correctly after a restart or on another device:

    unauthenticated -> authenticated_pending_password -> authenticated_pending_profile -> ready
    unauthenticated -> authenticated_pending_profile -> ready
    any state -> unauthenticated (sign-out)

Both terminal steps run the activation engine after their own changes are
committed. Activation is a separate unit of work and its failure never blocks
the transition.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educare.app.core.errors import OnboardingTransitionError
from educare.app.core.security import get_password_hash
from educare.app.models.user import User
from educare.app.schemas.onboarding import PasswordReplacementRequest, ProfileCompletionRequest
from educare.app.services.activation import activate_guardian_links_safely
from educare.app.services.identity import Identity

logger = logging.getLogger(__name__)


class OnboardingState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING_PASSWORD = "authenticated_pending_password"
    PENDING_PROFILE = "authenticated_pending_profile"
    READY = "ready"


ALLOWED_TRANSITIONS: dict[OnboardingState, frozenset[OnboardingState]] = {
    OnboardingState.UNAUTHENTICATED: frozenset(
        {OnboardingState.PENDING_PASSWORD, OnboardingState.PENDING_PROFILE, OnboardingState.READY}
    ),
    OnboardingState.PENDING_PASSWORD: frozenset({OnboardingState.PENDING_PROFILE, OnboardingState.UNAUTHENTICATED}),
    OnboardingState.PENDING_PROFILE: frozenset({OnboardingState.READY, OnboardingState.UNAUTHENTICATED}),
    OnboardingState.READY: frozenset({OnboardingState.UNAUTHENTICATED}),
}


@dataclass(frozen=True)
class OnboardingResult:
    state: OnboardingState
    activated_links: int = 0


def transition(current: OnboardingState, target: OnboardingState) -> OnboardingState:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise OnboardingTransitionError(current.value, target.value)
    return target


def profile_is_complete(user: User) -> bool:
    return all((getattr(user, name) or "").strip() for name in ("first_name", "last_name", "phone"))


def resolve_onboarding_state(user: User | None) -> OnboardingState:
    if user is None:
        return OnboardingState.UNAUTHENTICATED
    if user.must_change_password:
        return OnboardingState.PENDING_PASSWORD
    if user.is_guardian and not profile_is_complete(user):
        return OnboardingState.PENDING_PROFILE
    return OnboardingState.READY


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def complete_password_replacement(db: Session, user: User, submission: PasswordReplacementRequest) -> OnboardingResult:
    """Replace the provisioned password and store the mandatory profile fields together."""
    state = resolve_onboarding_state(user)
    if state is not OnboardingState.PENDING_PASSWORD:
        raise OnboardingTransitionError(state.value, OnboardingState.PENDING_PROFILE.value)

    user.hashed_password = get_password_hash(submission.new_password)
    user.first_name = submission.first_name
    user.last_name = submission.last_name
    user.phone = submission.phone
    user.must_change_password = False
    _commit(db)
    db.refresh(user)
    state = transition(state, OnboardingState.PENDING_PROFILE)
    logger.info("User %s replaced provisioned password", user.id)

    activated = activate_guardian_links_safely(db, Identity.from_user(user))

    # Profile fields arrive in the same submission, so the profile step is already satisfied.
    if resolve_onboarding_state(user) is OnboardingState.READY:
        state = transition(state, OnboardingState.READY)
    return OnboardingResult(state=state, activated_links=activated)


def complete_profile(db: Session, user: User, submission: ProfileCompletionRequest) -> OnboardingResult:
    state = resolve_onboarding_state(user)
    if state is not OnboardingState.PENDING_PROFILE:
        raise OnboardingTransitionError(state.value, OnboardingState.READY.value)

    user.first_name = submission.first_name
    user.last_name = submission.last_name
    user.phone = submission.phone
    if submission.occupation is not None:
        user.occupation = submission.occupation.strip() or None
    if submission.address is not None:
        user.address = submission.address.strip() or None
    _commit(db)
    db.refresh(user)
    logger.info("User %s completed profile", user.id)

    activated = activate_guardian_links_safely(db, Identity.from_user(user))
    return OnboardingResult(state=transition(state, OnboardingState.READY), activated_links=activated)
