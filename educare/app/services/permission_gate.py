"""
Permission gate for guardian read paths.

``resolve_permissions`` is the single authority on what a guardian may see for
a student. It never widens access: no link, or a link that is not ``active``,
resolves to every category denied. The stored booleans are returned exactly as
written; dependent categories (for example session logs without sessions) are
not reconciled here.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educare.app.core.errors import PermissionResolutionError
from educare.app.models.guardian_link import GuardianLink, LinkStatus, PermissionCategory

logger = logging.getLogger(__name__)

NO_LINK_STATUS = "none"


def _all_denied() -> dict[PermissionCategory, bool]:
    return {category: False for category in PermissionCategory}


@dataclass(frozen=True)
class PermissionSnapshot:
    student_id: int
    status: str = NO_LINK_STATUS
    permissions: dict[PermissionCategory, bool] = field(default_factory=_all_denied)

    def allows(self, category: PermissionCategory) -> bool:
        return self.permissions.get(category, False)

    @property
    def is_active(self) -> bool:
        return self.status == LinkStatus.ACTIVE.value

    def as_dict(self) -> dict:
        data = {"student_id": self.student_id, "status": self.status}
        data.update({category.value: self.allows(category) for category in PermissionCategory})
        return data

    @classmethod
    def denied(cls, student_id: int, status: str = NO_LINK_STATUS) -> "PermissionSnapshot":
        return cls(student_id=student_id, status=status)

    @classmethod
    def from_link(cls, link: GuardianLink) -> "PermissionSnapshot":
        if link.status != LinkStatus.ACTIVE.value:
            return cls.denied(link.student_id, link.status)
        permissions = {category: bool(getattr(link, category.column)) for category in PermissionCategory}
        return cls(student_id=link.student_id, status=link.status, permissions=permissions)


def resolve_permissions(db: Session, guardian_id: int, student_id: int) -> PermissionSnapshot:
    """Snapshot of what ``guardian_id`` may see for ``student_id``.

    Raises ``PermissionResolutionError`` when the link store cannot be read.
    """
    try:
        link = db.execute(
            select(GuardianLink).where(
                GuardianLink.student_id == student_id,
                GuardianLink.guardian_id == guardian_id,
                GuardianLink.status != LinkStatus.REVOKED.value,
            )
        ).scalars().first()
    except SQLAlchemyError as exc:
        logger.error("Permission lookup failed for guardian %s, student %s: %s", guardian_id, student_id, exc)
        raise PermissionResolutionError(f"Could not resolve permissions for student {student_id}") from exc

    if link is None:
        return PermissionSnapshot.denied(student_id)
    return PermissionSnapshot.from_link(link)


def resolve_permissions_or_deny(db: Session, guardian_id: int, student_id: int) -> PermissionSnapshot:
    """Read-path variant: a resolution failure is treated as every category denied."""
    try:
        return resolve_permissions(db, guardian_id, student_id)
    except PermissionResolutionError:
        logger.warning("Denying access to student %s for guardian %s after lookup failure", student_id, guardian_id)
        return PermissionSnapshot.denied(student_id)
