from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class PermissionMatrix(BaseModel):
    """Partial permission matrix; omitted fields keep their current or default value."""

    can_view_sessions: Optional[bool] = None
    can_view_session_logs: Optional[bool] = None
    can_view_goal_evaluations: Optional[bool] = None
    can_view_behavior_incidents: Optional[bool] = None
    can_view_media: Optional[bool] = None
    can_message_educator: Optional[bool] = None
    can_receive_notifications: Optional[bool] = None

    def changes(self) -> dict[str, bool]:
        return self.model_dump(exclude_none=True)


class GuardianInviteRequest(BaseModel):
    guardian_email: EmailStr
    relationship: Literal["mother", "father", "guardian", "other"] = "guardian"
    relationship_note: Optional[str] = None
    permissions: PermissionMatrix = PermissionMatrix()
    provision_account: bool = False


class RevokeRequest(BaseModel):
    reason: Optional[str] = None


class GuardianLinkRead(BaseModel):
    id: int
    student_id: int
    guardian_email: str
    guardian_id: Optional[int] = None
    status: str
    relationship: str
    relationship_note: Optional[str] = None
    can_view_sessions: bool
    can_view_session_logs: bool
    can_view_goal_evaluations: bool
    can_view_behavior_incidents: bool
    can_view_media: bool
    can_message_educator: bool
    can_receive_notifications: bool
    invited_by: int
    created_at: datetime
    activated_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoke_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_link(cls, link) -> "GuardianLinkRead":
        data = {name: getattr(link, name) for name in GuardianLinkRead.model_fields if name != "relationship"}
        data["relationship"] = link.relationship_type
        return cls(**data)


class TemporaryCredentials(BaseModel):
    email: EmailStr
    temporary_password: str


class GuardianInviteResponse(GuardianLinkRead):
    credentials: Optional[TemporaryCredentials] = None
