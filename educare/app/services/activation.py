"""
Activation of guardian links.

Every ``invited`` link addressed to a guardian's email is moved to ``active``
and attributed to the guardian's identity. The operation is idempotent and is
invoked from every flow that can be the first moment a guardian is known:
sign-in, forced password replacement, profile completion and password change.

Each record is advanced with a single conditional UPDATE guarded on
``status = 'invited'``. When two sessions race on the same records, the
statement that loses affects zero rows and is not counted, so a record is never
half-updated and never counted (or audited) twice.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educare.app.core.errors import ActivationError
from educare.app.core.time import utc_now
from educare.app.models.audit_log import AuditLog
from educare.app.models.guardian_link import GuardianLink, LinkStatus
from educare.app.services.identity import Identity

logger = logging.getLogger(__name__)

LINK_ACTIVATED_ACTION = "guardian_link_activated"


def _transition_link(db: Session, link_id: int, identity: Identity) -> bool:
    now = utc_now()
    result = db.execute(
        update(GuardianLink)
        .where(
            GuardianLink.id == link_id,
            GuardianLink.status == LinkStatus.INVITED.value,
        )
        .values(
            guardian_id=identity.id,
            status=LinkStatus.ACTIVE.value,
            activated_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def activate_guardian_links(db: Session, identity: Identity) -> int:
    """Advance invited links for ``identity.email`` to active; return how many moved.

    Educators never own links, so any non-guardian identity is a no-op. Store
    failures roll back the whole pass and raise ``ActivationError``; records
    left ``invited`` are picked up by the next call.
    """
    if not identity.is_guardian:
        return 0

    try:
        pending = db.execute(
            select(GuardianLink.id, GuardianLink.student_id).where(
                GuardianLink.guardian_email == identity.email,
                GuardianLink.status == LinkStatus.INVITED.value,
            )
        ).all()

        activated = 0
        for link_id, student_id in pending:
            if not _transition_link(db, link_id, identity):
                continue
            activated += 1
            db.add(
                AuditLog(
                    actor_id=None,
                    student_id=student_id,
                    link_id=link_id,
                    action=LINK_ACTIVATED_ACTION,
                    detail=f"guardian_id={identity.id}",
                )
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Activation failed for guardian %s: %s", identity.id, exc)
        raise ActivationError(f"Could not activate links for guardian {identity.id}") from exc

    if activated:
        logger.info("Activated %d guardian link(s) for guardian %s", activated, identity.id)
    return activated


def activate_guardian_links_safely(db: Session, identity: Identity) -> int:
    """Run activation without letting its failure affect the calling flow."""
    try:
        return activate_guardian_links(db, identity)
    except ActivationError:
        logger.warning(
            "Link activation deferred for guardian %s; it will be retried on next sign-in",
            identity.id,
            exc_info=True,
        )
        return 0
