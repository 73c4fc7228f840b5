"""Sign-up, sign-in, sign-out and password change for both roles."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from educare.app.core.errors import (
    EmailAlreadyRegisteredError,
    EmailNotVerifiedError,
    InactiveAccountError,
    InvalidCredentialsError,
)
from educare.app.core.security import (
    EMAIL_VERIFICATION_TOKEN_TYPE,
    create_access_token,
    create_email_verification_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from educare.app.core.settings import get_settings
from educare.app.core.time import utc_now
from educare.app.models.user import User
from educare.app.schemas.onboarding import ChangePasswordRequest
from educare.app.schemas.user import UserCreate
from educare.app.services.activation import activate_guardian_links_safely
from educare.app.services.identity import Identity
from educare.app.services.notifications import send_email_verification
from educare.app.services.onboarding import OnboardingState, resolve_onboarding_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    user: User
    access_token: str
    onboarding_state: OnboardingState
    activated_links: int


def register_user(db: Session, user_in: UserCreate) -> User:
    existing = db.query(User).filter(User.email == user_in.email).first()
    if existing:
        raise EmailAlreadyRegisteredError()
    settings = get_settings()
    user = User(
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),  # Hash password before storing
        role=user_in.role,
        first_name=(user_in.first_name or "").strip() or None,
        last_name=(user_in.last_name or "").strip() or None,
        phone=user_in.phone,
        email_verified=not settings.require_email_verification,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    if not user.email_verified:
        send_email_verification(user, create_email_verification_token(user.id))
    return user


def verify_email(db: Session, token: str) -> User:
    try:
        payload = decode_token(token, EMAIL_VERIFICATION_TOKEN_TYPE)
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise InvalidCredentialsError()
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise InvalidCredentialsError()
    if not user.email_verified:
        user.email_verified = True
        db.commit()
        db.refresh(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Check credentials; an unverified email is reported only once the password matched."""
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.hashed_password:
        raise InvalidCredentialsError()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InactiveAccountError()
    if not user.email_verified:
        raise EmailNotVerifiedError(user.email)
    return user


def sign_in(db: Session, email: str, password: str) -> SignInResult:
    user = authenticate(db, email, password)
    user.last_login = utc_now()
    db.commit()
    db.refresh(user)

    # Picks up invitations addressed to this email since the previous session.
    activated = activate_guardian_links_safely(db, Identity.from_user(user))

    state = resolve_onboarding_state(user)
    token = create_access_token(user_id=user.id, session_version=user.session_version)
    return SignInResult(user=user, access_token=token, onboarding_state=state, activated_links=activated)


def sign_out(db: Session, user: User) -> None:
    user.session_version = (user.session_version or 0) + 1
    db.commit()
    logger.info("User %s signed out", user.id)


def change_password(db: Session, user: User, request: ChangePasswordRequest) -> int:
    if not user.hashed_password or not verify_password(request.current_password, user.hashed_password):
        raise InvalidCredentialsError()
    user.hashed_password = get_password_hash(request.new_password)
    db.commit()
    db.refresh(user)
    return activate_guardian_links_safely(db, Identity.from_user(user))
