"""
Educator-side management of guardian links: invite, list, adjust permissions,
revoke and remove.

Links never become ``active`` here; only the activation engine does that once
the invited guardian signs in or finishes onboarding. Removing a link is a hard
delete, unlike students, which are only deactivated.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from educare.app.core.errors import GuardianLinkConflictError, GuardianLinkNotFoundError, StudentNotFoundError
from educare.app.core.security import generate_temporary_password, get_password_hash
from educare.app.core.time import utc_now
from educare.app.models.audit_log import AuditLog
from educare.app.models.guardian_link import DEFAULT_PERMISSIONS, GuardianLink, LinkStatus
from educare.app.models.student import Student
from educare.app.models.user import User, UserRole
from educare.app.schemas.guardian_link import GuardianInviteRequest, TemporaryCredentials
from educare.app.services.notifications import send_invitation_notice

logger = logging.getLogger(__name__)


def get_owned_student(db: Session, student_id: int, educator_id: int) -> Student:
    student = (
        db.query(Student)
        .filter(
            Student.id == student_id,
            Student.educator_id == educator_id,
            Student.is_active.is_(True),
        )
        .first()
    )
    if not student:
        raise StudentNotFoundError(student_id)
    return student


def _get_owned_link(db: Session, link_id: int, educator_id: int) -> GuardianLink:
    link = (
        db.query(GuardianLink)
        .join(Student, GuardianLink.student_id == Student.id)
        .filter(GuardianLink.id == link_id, Student.educator_id == educator_id)
        .first()
    )
    if not link:
        raise GuardianLinkNotFoundError(link_id)
    return link


def _audit(db: Session, actor_id: int, link: GuardianLink, action: str, detail: Optional[str] = None) -> None:
    db.add(AuditLog(actor_id=actor_id, student_id=link.student_id, link_id=link.id, action=action, detail=detail))


def _open_link(db: Session, student_id: int, guardian_email: str) -> GuardianLink | None:
    return (
        db.query(GuardianLink)
        .filter(
            GuardianLink.student_id == student_id,
            GuardianLink.guardian_email == guardian_email,
            GuardianLink.status != LinkStatus.REVOKED.value,
        )
        .first()
    )


def _provision_guardian(db: Session, email: str) -> TemporaryCredentials | None:
    """Create a guardian account that must replace its password on first sign-in."""
    if db.query(User).filter(User.email == email).first():
        return None
    temporary_password = generate_temporary_password()
    db.add(
        User(
            email=email,
            hashed_password=get_password_hash(temporary_password),
            role=UserRole.GUARDIAN.value,
            must_change_password=True,
            email_verified=True,
        )
    )
    return TemporaryCredentials(email=email, temporary_password=temporary_password)


def invite_guardian(
    db: Session,
    educator: User,
    student_id: int,
    request: GuardianInviteRequest,
) -> tuple[GuardianLink, TemporaryCredentials | None]:
    student = get_owned_student(db, student_id, educator.id)
    email = str(request.guardian_email)

    existing = _open_link(db, student.id, email)
    if existing:
        if existing.status == LinkStatus.ACTIVE.value:
            raise GuardianLinkConflictError("This email is already linked to the student")
        raise GuardianLinkConflictError("This email has already been invited")

    account = db.query(User).filter(User.email == email).first()
    if account and account.role != UserRole.GUARDIAN.value:
        # Only guardian identities are ever activated.
        raise GuardianLinkConflictError("This email belongs to an educator account")

    link = GuardianLink(
        student_id=student.id,
        guardian_email=email,
        status=LinkStatus.INVITED.value,
        relationship_type=request.relationship,
        relationship_note=request.relationship_note,
        invited_by=educator.id,
        **{**DEFAULT_PERMISSIONS, **request.permissions.changes()},
    )
    db.add(link)
    credentials = _provision_guardian(db, email) if request.provision_account else None
    try:
        db.flush()
        _audit(db, educator.id, link, "guardian_invited", detail=email)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent invitation for the same pair.
        db.rollback()
        raise GuardianLinkConflictError("This email has already been invited")
    db.refresh(link)
    logger.info("Educator %s invited %s to student %s (link %s)", educator.id, email, student.id, link.id)

    send_invitation_notice(db, link, includes_credentials=credentials is not None)
    return link, credentials


def list_guardian_links(db: Session, educator: User, student_id: int) -> list[GuardianLink]:
    student = get_owned_student(db, student_id, educator.id)
    return (
        db.query(GuardianLink)
        .filter(GuardianLink.student_id == student.id)
        .order_by(GuardianLink.created_at.desc(), GuardianLink.id.desc())
        .all()
    )


def update_permissions(db: Session, educator: User, link_id: int, changes: dict[str, bool]) -> GuardianLink:
    """Merge ``changes`` into the stored matrix; fields not given keep their value."""
    link = _get_owned_link(db, link_id, educator.id)
    for column, value in changes.items():
        setattr(link, column, value)
    link.updated_at = utc_now()
    _audit(db, educator.id, link, "guardian_permissions_updated", detail=",".join(sorted(changes)))
    db.commit()
    db.refresh(link)
    return link


def revoke_link(db: Session, educator: User, link_id: int, reason: Optional[str] = None) -> GuardianLink:
    link = _get_owned_link(db, link_id, educator.id)
    if link.status == LinkStatus.REVOKED.value:
        return link
    now = utc_now()
    link.status = LinkStatus.REVOKED.value
    link.revoked_at = now
    link.revoked_by = educator.id
    link.revoke_reason = reason
    link.updated_at = now
    _audit(db, educator.id, link, "guardian_link_revoked", detail=reason)
    db.commit()
    db.refresh(link)
    logger.info("Educator %s revoked link %s", educator.id, link.id)
    return link


def remove_link(db: Session, educator: User, link_id: int) -> None:
    link = _get_owned_link(db, link_id, educator.id)
    _audit(db, educator.id, link, "guardian_link_removed", detail=link.guardian_email)
    db.delete(link)
    db.commit()
    logger.info("Educator %s removed link %s", educator.id, link_id)
