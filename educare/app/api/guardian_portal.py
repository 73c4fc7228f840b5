"""Guardian portal: linked students, permission snapshots and gated reads."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from educare.app.core.errors import PermissionResolutionError, PermissionsUnavailableError
from educare.app.db.session import get_db
from educare.app.dependencies.auth import get_ready_guardian
from educare.app.models.user import User
from educare.app.schemas.permissions import (
    GatedBehaviorIncidents,
    GatedGoalEvaluations,
    GatedMessages,
    GatedSessions,
    GuardianStudentRead,
    MessageCreate,
    MessageEntry,
    PermissionSnapshotRead,
)
from educare.app.services.guardian_portal import (
    get_student_behavior_incidents,
    get_student_goal_evaluations,
    get_student_messages,
    get_student_sessions,
    list_guardian_students,
    send_message_to_educator,
    snapshot_read,
)
from educare.app.services.permission_gate import resolve_permissions

router = APIRouter(prefix="/guardian", tags=["guardian-portal"])


@router.get("/students", response_model=list[GuardianStudentRead])
async def my_students(db: Session = Depends(get_db), current_guardian: User = Depends(get_ready_guardian)):
    return list_guardian_students(db, current_guardian)


@router.get("/students/{student_id}/permissions", response_model=PermissionSnapshotRead)
async def my_permissions(
    student_id: int,
    db: Session = Depends(get_db),
    current_guardian: User = Depends(get_ready_guardian),
):
    try:
        snapshot = resolve_permissions(db, current_guardian.id, student_id)
    except PermissionResolutionError:
        raise PermissionsUnavailableError(student_id)
    return snapshot_read(snapshot)


@router.get("/students/{student_id}/sessions", response_model=GatedSessions)
async def student_sessions(
    student_id: int,
    db: Session = Depends(get_db),
    current_guardian: User = Depends(get_ready_guardian),
):
    return get_student_sessions(db, current_guardian, student_id)


@router.get("/students/{student_id}/behavior-incidents", response_model=GatedBehaviorIncidents)
async def student_behavior_incidents(
    student_id: int,
    db: Session = Depends(get_db),
    current_guardian: User = Depends(get_ready_guardian),
):
    return get_student_behavior_incidents(db, current_guardian, student_id)


@router.get("/students/{student_id}/goal-evaluations", response_model=GatedGoalEvaluations)
async def student_goal_evaluations(
    student_id: int,
    db: Session = Depends(get_db),
    current_guardian: User = Depends(get_ready_guardian),
):
    return get_student_goal_evaluations(db, current_guardian, student_id)


@router.get("/students/{student_id}/messages", response_model=GatedMessages)
async def student_messages(
    student_id: int,
    db: Session = Depends(get_db),
    current_guardian: User = Depends(get_ready_guardian),
):
    return get_student_messages(db, current_guardian, student_id)


@router.post("/students/{student_id}/messages", response_model=MessageEntry, status_code=status.HTTP_201_CREATED)
async def message_educator(
    student_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_guardian: User = Depends(get_ready_guardian),
):
    return send_message_to_educator(db, current_guardian, student_id, payload)
