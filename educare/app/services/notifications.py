"""
Outbound notices for invitations and email verification.

Delivery itself belongs to an external mail channel. This module records that a
notice was requested (audit entry plus log line) and never raises into the
caller: a link stays addressable by its email whether or not a notice was sent.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educare.app.models.audit_log import AuditLog
from educare.app.models.guardian_link import GuardianLink
from educare.app.models.user import User

logger = logging.getLogger(__name__)

INVITATION_DISPATCHED_ACTION = "guardian_invitation_dispatched"


def send_invitation_notice(db: Session, link: GuardianLink, *, includes_credentials: bool = False) -> bool:
    try:
        db.add(
            AuditLog(
                actor_id=link.invited_by,
                student_id=link.student_id,
                link_id=link.id,
                action=INVITATION_DISPATCHED_ACTION,
                detail="with temporary credentials" if includes_credentials else None,
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not record invitation notice for link %s", link.id)
        return False
    logger.info("Invitation notice queued for link %s (student %s)", link.id, link.student_id)
    return True


def send_email_verification(user: User, token: str) -> None:
    # Token goes to the mail channel only; never log it.
    logger.info("Verification email queued for user %s", user.id)
