"""Handles account sign-up and email verification."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from educare.app.db.session import get_db
from educare.app.schemas.user import EmailVerificationRequest, UserCreate, UserRead
from educare.app.services.authentication import register_user, verify_email

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    return register_user(db, user_in)


@router.post("/verify-email", response_model=UserRead)
def confirm_email(payload: EmailVerificationRequest, db: Session = Depends(get_db)):
    return verify_email(db, payload.token)
