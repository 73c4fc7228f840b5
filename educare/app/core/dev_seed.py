import logging
import os

from sqlalchemy.orm import Session

from educare.app.core.security import get_password_hash
from educare.app.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_EDUCATORS = [
    "educator@test.com",
    "educator1@test.com",
]


def ensure_default_dev_educator(db: Session) -> None:
    """
    Create default verified educator accounts for local development if missing.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    created = False
    for email in DEFAULT_DEV_EDUCATORS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue

        user = User(
            email=email,
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            role=UserRole.EDUCATOR.value,
            email_verified=True,
            first_name="Dev",
            last_name="Educator",
        )
        db.add(user)
        created = True

    if created:
        db.commit()
        logger.info("Seeded default development educators")
