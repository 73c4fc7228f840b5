"""Educator-owned student records and their guardian links."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from educare.app.db.session import get_db
from educare.app.dependencies.auth import get_current_educator
from educare.app.models.student import Student
from educare.app.models.user import User
from educare.app.schemas.guardian_link import GuardianInviteRequest, GuardianInviteResponse, GuardianLinkRead
from educare.app.schemas.student import StudentCreate, StudentRead
from educare.app.services.guardian_links import get_owned_student, invite_guardian, list_guardian_links

router = APIRouter(prefix="/students", tags=["students"])


@router.post("/", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
async def create_student(
    student_in: StudentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_educator),
):
    student = Student(
        educator_id=current_user.id,
        first_name=student_in.first_name,
        last_name=student_in.last_name,
        date_of_birth=student_in.date_of_birth,
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


@router.get("/", response_model=list[StudentRead])
async def list_students(db: Session = Depends(get_db), current_user: User = Depends(get_current_educator)):
    return (
        db.query(Student)
        .filter(Student.educator_id == current_user.id, Student.is_active.is_(True))
        .order_by(Student.id)
        .all()
    )


@router.get("/{student_id}", response_model=StudentRead)
async def get_student(student_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_educator)):
    return get_owned_student(db, student_id, current_user.id)


@router.post("/{student_id}/guardians", response_model=GuardianInviteResponse, status_code=status.HTTP_201_CREATED)
async def invite_student_guardian(
    student_id: int,
    payload: GuardianInviteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_educator),
):
    link, credentials = invite_guardian(db, current_user, student_id, payload)
    # Temporary credentials are only ever returned here, once.
    return GuardianInviteResponse(**GuardianLinkRead.from_link(link).model_dump(), credentials=credentials)


@router.get("/{student_id}/guardians", response_model=list[GuardianLinkRead])
async def list_student_guardians(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_educator),
):
    return [GuardianLinkRead.from_link(link) for link in list_guardian_links(db, current_user, student_id)]
