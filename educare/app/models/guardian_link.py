"""Guardian-to-student link with its lifecycle status and permission matrix."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base
from educare.app.core.time import utc_now


class LinkStatus(str, Enum):
    INVITED = "invited"
    ACTIVE = "active"
    REVOKED = "revoked"


class PermissionCategory(str, Enum):
    VIEW_SESSIONS = "view_sessions"
    VIEW_SESSION_LOGS = "view_session_logs"
    VIEW_GOAL_EVALUATIONS = "view_goal_evaluations"
    VIEW_BEHAVIOR_INCIDENTS = "view_behavior_incidents"
    VIEW_MEDIA = "view_media"
    MESSAGE_EDUCATOR = "message_educator"
    RECEIVE_NOTIFICATIONS = "receive_notifications"

    @property
    def column(self) -> str:
        return f"can_{self.value}"


PERMISSION_COLUMNS = tuple(category.column for category in PermissionCategory)

# Behaviour incidents are sensitive and stay off unless the educator opts in.
DEFAULT_PERMISSIONS = {
    "can_view_sessions": True,
    "can_view_session_logs": True,
    "can_view_goal_evaluations": True,
    "can_view_behavior_incidents": False,
    "can_view_media": True,
    "can_message_educator": True,
    "can_receive_notifications": True,
}

_OPEN_LINK = text("status != 'revoked'")


class GuardianLink(Base):
    __tablename__ = "guardian_links"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    guardian_email = Column(String, nullable=False, index=True)
    guardian_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=LinkStatus.INVITED.value)
    relationship_type = Column("relationship", String(20), nullable=False, default="guardian")
    relationship_note = Column(Text, nullable=True)

    can_view_sessions = Column(Boolean, nullable=False, default=False)
    can_view_session_logs = Column(Boolean, nullable=False, default=False)
    can_view_goal_evaluations = Column(Boolean, nullable=False, default=False)
    can_view_behavior_incidents = Column(Boolean, nullable=False, default=False)
    can_view_media = Column(Boolean, nullable=False, default=False)
    can_message_educator = Column(Boolean, nullable=False, default=False)
    can_receive_notifications = Column(Boolean, nullable=False, default=False)

    invited_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    activated_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    revoke_reason = Column(Text, nullable=True)

    __table_args__ = (
        Index(
            "uq_guardian_link_open",
            "student_id",
            "guardian_email",
            unique=True,
            sqlite_where=_OPEN_LINK,
            postgresql_where=_OPEN_LINK,
        ),
    )

    student = relationship("Student", back_populates="guardian_links", foreign_keys=[student_id])
    guardian = relationship("User", back_populates="guardian_links", foreign_keys=[guardian_id])
    inviter = relationship("User", foreign_keys=[invited_by])

    def permission_matrix(self) -> dict[str, bool]:
        return {column: bool(getattr(self, column)) for column in PERMISSION_COLUMNS}
