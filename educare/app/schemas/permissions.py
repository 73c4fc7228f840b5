from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class PermissionSnapshotRead(BaseModel):
    student_id: int
    status: str
    view_sessions: bool
    view_session_logs: bool
    view_goal_evaluations: bool
    view_behavior_incidents: bool
    view_media: bool
    message_educator: bool
    receive_notifications: bool


class GuardianStudentRead(BaseModel):
    student_id: int
    student_display_name: str
    link_id: int
    relationship: str
    permissions: PermissionSnapshotRead


class SessionEntry(BaseModel):
    id: int
    session_date: datetime
    status: str
    log_notes: Optional[str] = None


class BehaviorIncidentEntry(BaseModel):
    id: int
    occurred_at: datetime
    description: str
    severity: str


class GatedSessions(BaseModel):
    """Empty with ``blocked`` set when the guardian may not see this category."""

    blocked: bool
    logs_visible: bool = False
    items: list[SessionEntry] = []


class GatedBehaviorIncidents(BaseModel):
    blocked: bool
    items: list[BehaviorIncidentEntry] = []


class GoalEvaluationEntry(BaseModel):
    id: int
    domain: str
    goal_description: str
    result: str
    notes: Optional[str] = None
    evaluated_at: datetime


class GatedGoalEvaluations(BaseModel):
    blocked: bool
    items: list[GoalEvaluationEntry] = []


class MessageCreate(BaseModel):
    subject: Optional[str] = None
    body: str

    @field_validator("body")
    @classmethod
    def _body_required(cls, value: str) -> str:
        body = (value or "").strip()
        if not body:
            raise ValueError("Message is required")
        return body


class MessageEntry(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    subject: Optional[str] = None
    body: str
    created_at: datetime


class GatedMessages(BaseModel):
    blocked: bool
    items: list[MessageEntry] = []
