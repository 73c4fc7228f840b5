"""Guardian-facing reads. Each gated category consults the permission gate first."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from educare.app.core.errors import MessagingNotPermittedError
from educare.app.core.time import as_utc
from educare.app.models.behavior_incident import BehaviorIncident
from educare.app.models.goal_evaluation import GoalEvaluation
from educare.app.models.guardian_link import GuardianLink, LinkStatus, PermissionCategory
from educare.app.models.guardian_message import GuardianMessage
from educare.app.models.session import Session as SessionModel
from educare.app.models.student import Student
from educare.app.models.user import User
from educare.app.schemas.permissions import (
    BehaviorIncidentEntry,
    GatedBehaviorIncidents,
    GatedGoalEvaluations,
    GatedMessages,
    GatedSessions,
    GoalEvaluationEntry,
    GuardianStudentRead,
    MessageCreate,
    MessageEntry,
    PermissionSnapshotRead,
    SessionEntry,
)
from educare.app.services.permission_gate import PermissionSnapshot, resolve_permissions_or_deny

logger = logging.getLogger(__name__)


def snapshot_read(snapshot: PermissionSnapshot) -> PermissionSnapshotRead:
    return PermissionSnapshotRead(**snapshot.as_dict())


def _active_student(db: Session, student_id: int) -> Student | None:
    return db.query(Student).filter(Student.id == student_id, Student.is_active.is_(True)).first()


def _readable_snapshot(db: Session, guardian: User, student_id: int) -> PermissionSnapshot:
    """Snapshot used by the gated reads; a deactivated student is treated like a missing link."""
    snapshot = resolve_permissions_or_deny(db, guardian.id, student_id)
    if snapshot.is_active and _active_student(db, student_id) is None:
        return PermissionSnapshot.denied(student_id)
    return snapshot


def list_guardian_students(db: Session, guardian: User) -> list[GuardianStudentRead]:
    links = (
        db.query(GuardianLink)
        .join(Student, GuardianLink.student_id == Student.id)
        .filter(
            GuardianLink.guardian_id == guardian.id,
            GuardianLink.status == LinkStatus.ACTIVE.value,
            Student.is_active.is_(True),
        )
        .order_by(GuardianLink.created_at.desc(), GuardianLink.id.desc())
        .all()
    )
    return [
        GuardianStudentRead(
            student_id=link.student_id,
            student_display_name=link.student.display_name,
            link_id=link.id,
            relationship=link.relationship_type,
            permissions=snapshot_read(PermissionSnapshot.from_link(link)),
        )
        for link in links
    ]


def get_student_sessions(db: Session, guardian: User, student_id: int) -> GatedSessions:
    snapshot = _readable_snapshot(db, guardian, student_id)
    if not snapshot.allows(PermissionCategory.VIEW_SESSIONS):
        return GatedSessions(blocked=True)

    logs_visible = snapshot.allows(PermissionCategory.VIEW_SESSION_LOGS)
    sessions = (
        db.query(SessionModel)
        .filter(SessionModel.student_id == student_id)
        .order_by(SessionModel.session_date.desc(), SessionModel.id.desc())
        .all()
    )
    items = [
        SessionEntry(
            id=s.id,
            session_date=as_utc(s.session_date),
            status=s.status,
            log_notes=s.log_notes if logs_visible else None,
        )
        for s in sessions
    ]
    return GatedSessions(blocked=False, logs_visible=logs_visible, items=items)


def get_student_goal_evaluations(db: Session, guardian: User, student_id: int) -> GatedGoalEvaluations:
    snapshot = _readable_snapshot(db, guardian, student_id)
    if not snapshot.allows(PermissionCategory.VIEW_GOAL_EVALUATIONS):
        return GatedGoalEvaluations(blocked=True)

    evaluations = (
        db.query(GoalEvaluation)
        .filter(GoalEvaluation.student_id == student_id)
        .order_by(GoalEvaluation.evaluated_at.desc(), GoalEvaluation.id.desc())
        .all()
    )
    return GatedGoalEvaluations(
        blocked=False,
        items=[
            GoalEvaluationEntry(
                id=e.id,
                domain=e.domain,
                goal_description=e.goal_description,
                result=e.result,
                notes=e.notes,
                evaluated_at=as_utc(e.evaluated_at),
            )
            for e in evaluations
        ],
    )


def get_student_behavior_incidents(db: Session, guardian: User, student_id: int) -> GatedBehaviorIncidents:
    snapshot = _readable_snapshot(db, guardian, student_id)
    if not snapshot.allows(PermissionCategory.VIEW_BEHAVIOR_INCIDENTS):
        return GatedBehaviorIncidents(blocked=True)

    incidents = (
        db.query(BehaviorIncident)
        .filter(BehaviorIncident.student_id == student_id)
        .order_by(BehaviorIncident.occurred_at.desc())
        .all()
    )
    return GatedBehaviorIncidents(
        blocked=False,
        items=[
            BehaviorIncidentEntry(
                id=i.id,
                occurred_at=as_utc(i.occurred_at),
                description=i.description,
                severity=i.severity,
            )
            for i in incidents
        ],
    )


def _message_entry(message: GuardianMessage) -> MessageEntry:
    return MessageEntry(
        id=message.id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        subject=message.subject,
        body=message.body,
        created_at=as_utc(message.created_at),
    )


def get_student_messages(db: Session, guardian: User, student_id: int) -> GatedMessages:
    snapshot = _readable_snapshot(db, guardian, student_id)
    if not snapshot.allows(PermissionCategory.MESSAGE_EDUCATOR):
        return GatedMessages(blocked=True)

    messages = (
        db.query(GuardianMessage)
        .filter(
            GuardianMessage.student_id == student_id,
            or_(GuardianMessage.sender_id == guardian.id, GuardianMessage.recipient_id == guardian.id),
        )
        .order_by(GuardianMessage.created_at.asc(), GuardianMessage.id.asc())
        .all()
    )
    return GatedMessages(blocked=False, items=[_message_entry(m) for m in messages])


def send_message_to_educator(db: Session, guardian: User, student_id: int, request: MessageCreate) -> MessageEntry:
    snapshot = _readable_snapshot(db, guardian, student_id)
    if not snapshot.allows(PermissionCategory.MESSAGE_EDUCATOR):
        raise MessagingNotPermittedError(student_id)

    student = _active_student(db, student_id)
    message = GuardianMessage(
        student_id=student_id,
        sender_id=guardian.id,
        recipient_id=student.educator_id,
        subject=(request.subject or "").strip() or None,
        body=request.body,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("Guardian %s messaged educator %s about student %s", guardian.id, student.educator_id, student_id)
    return _message_entry(message)
