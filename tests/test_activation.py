import pytest
from sqlalchemy.exc import OperationalError

from educare.app.core.errors import ActivationError
from educare.app.db.base import Base
from educare.app.db.session import SessionLocal, engine
from educare.app.models.audit_log import AuditLog
from educare.app.models.guardian_link import DEFAULT_PERMISSIONS, GuardianLink
from educare.app.models.student import Student
from educare.app.models.user import User
from educare.app.services import activation
from educare.app.services.activation import activate_guardian_links, activate_guardian_links_safely
from educare.app.services.identity import Identity


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_user(db, email: str, role: str) -> User:
    user = User(email=email, hashed_password="x", role=role, email_verified=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_student(db, educator: User, first_name: str = "Minh") -> Student:
    student = Student(educator_id=educator.id, first_name=first_name, last_name="Tran")
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


def invite(db, student: Student, educator: User, email: str, status: str = "invited") -> GuardianLink:
    link = GuardianLink(
        student_id=student.id,
        guardian_email=email,
        status=status,
        invited_by=educator.id,
        **DEFAULT_PERMISSIONS,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def test_activation_transitions_invited_links(db):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "parent@example.com", "guardian")
    first = invite(db, create_student(db, educator, "An"), educator, "parent@example.com")
    second = invite(db, create_student(db, educator, "Binh"), educator, "parent@example.com")

    assert activate_guardian_links(db, Identity.from_user(guardian)) == 2

    for link_id in (first.id, second.id):
        link = db.get(GuardianLink, link_id)
        db.refresh(link)
        assert link.status == "active"
        assert link.guardian_id == guardian.id
        assert link.activated_at is not None


def test_second_call_is_a_no_op(db):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "parent@example.com", "guardian")
    link = invite(db, create_student(db, educator), educator, "parent@example.com")
    identity = Identity.from_user(guardian)

    assert activate_guardian_links(db, identity) == 1
    db.refresh(link)
    first_activated_at = link.activated_at
    first_updated_at = link.updated_at

    assert activate_guardian_links(db, identity) == 0
    db.refresh(link)
    assert link.activated_at == first_activated_at
    assert link.updated_at == first_updated_at


def test_activation_audited_once_per_record(db):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "parent@example.com", "guardian")
    invite(db, create_student(db, educator), educator, "parent@example.com")
    identity = Identity.from_user(guardian)

    activate_guardian_links(db, identity)
    activate_guardian_links(db, identity)

    entries = db.query(AuditLog).filter(AuditLog.action == "guardian_link_activated").all()
    assert len(entries) == 1
    assert entries[0].actor_id is None


def test_educator_identity_activates_nothing(db):
    educator = create_user(db, "teacher@example.com", "educator")
    link = invite(db, create_student(db, educator), educator, "teacher@example.com")

    assert activate_guardian_links(db, Identity.from_user(educator)) == 0
    db.refresh(link)
    assert link.status == "invited"
    assert link.guardian_id is None
    assert link.activated_at is None


def test_email_match_is_exact_and_case_sensitive(db):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "Parent@example.com", "guardian")
    link = invite(db, create_student(db, educator), educator, "parent@example.com")

    assert activate_guardian_links(db, Identity.from_user(guardian)) == 0
    db.refresh(link)
    assert link.status == "invited"


def test_revoked_and_active_links_are_left_alone(db):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "parent@example.com", "guardian")
    revoked = invite(db, create_student(db, educator, "An"), educator, "parent@example.com", status="revoked")

    assert activate_guardian_links(db, Identity.from_user(guardian)) == 0
    db.refresh(revoked)
    assert revoked.status == "revoked"
    assert revoked.guardian_id is None


def test_concurrent_sessions_converge_without_double_counting():
    setup = SessionLocal()
    educator = create_user(setup, "teacher@example.com", "educator")
    guardian = create_user(setup, "parent@example.com", "guardian")
    link = invite(setup, create_student(setup, educator), educator, "parent@example.com")
    identity = Identity.from_user(guardian)
    link_id = link.id
    setup.close()

    device_a = SessionLocal()
    device_b = SessionLocal()
    try:
        # Device B read the pending record before device A finished its transition.
        assert activation._transition_link(device_a, link_id, identity) is True
        device_a.commit()
        assert activation._transition_link(device_b, link_id, identity) is False
        device_b.commit()
        assert activate_guardian_links(device_b, identity) == 0
    finally:
        device_a.close()
        device_b.close()

    with SessionLocal() as check:
        stored = check.get(GuardianLink, link_id)
        assert stored.status == "active"
        assert stored.guardian_id == guardian.id


def test_store_failure_rolls_back_and_raises(db, monkeypatch):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "parent@example.com", "guardian")
    student_a = create_student(db, educator, "An")
    student_b = create_student(db, educator, "Binh")
    invite(db, student_a, educator, "parent@example.com")
    invite(db, student_b, educator, "parent@example.com")

    real_transition = activation._transition_link
    calls = []

    def flaky_transition(session, link_id, identity):
        calls.append(link_id)
        if len(calls) == 2:
            raise OperationalError("UPDATE guardian_links", {}, Exception("store unreachable"))
        return real_transition(session, link_id, identity)

    monkeypatch.setattr(activation, "_transition_link", flaky_transition)

    with pytest.raises(ActivationError):
        activate_guardian_links(db, Identity.from_user(guardian))

    with SessionLocal() as check:
        for link in check.query(GuardianLink).all():
            assert link.status == "invited"
            assert link.guardian_id is None
            assert link.activated_at is None


def test_safe_wrapper_swallows_failure_and_retry_heals(db, monkeypatch):
    educator = create_user(db, "teacher@example.com", "educator")
    guardian = create_user(db, "parent@example.com", "guardian")
    invite(db, create_student(db, educator), educator, "parent@example.com")
    identity = Identity.from_user(guardian)

    def broken(*args, **kwargs):
        raise OperationalError("UPDATE guardian_links", {}, Exception("store unreachable"))

    monkeypatch.setattr(activation, "_transition_link", broken)
    assert activate_guardian_links_safely(db, identity) == 0

    monkeypatch.undo()
    assert activate_guardian_links_safely(db, identity) == 1
