import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from educare.app.core.errors import OnboardingTransitionError
from educare.app.core.security import create_email_verification_token, get_password_hash, verify_password
from educare.app.db.base import Base
from educare.app.db.session import SessionLocal, engine
from educare.app.main import app
from educare.app.models.guardian_link import GuardianLink
from educare.app.models.student import Student
from educare.app.models.user import User
from educare.app.schemas.onboarding import PasswordReplacementRequest, ProfileCompletionRequest
from educare.app.services import activation
from educare.app.services.onboarding import (
    OnboardingState,
    complete_password_replacement,
    complete_profile,
    resolve_onboarding_state,
    transition,
)

PROFILE = {"first_name": "Lan", "last_name": "Nguyen", "phone": "0912345678"}


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str, role: str = "educator") -> str:
    response = client.post("/auth/register", json={"email": email, "password": password, "role": role})
    token = create_email_verification_token(response.json()["id"])
    client.post("/auth/verify-email", json={"token": token})
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def invite_with_account(client: TestClient, educator_token: str, guardian_email: str) -> dict:
    headers = {"Authorization": f"Bearer {educator_token}"}
    student = client.post("/students/", json={"first_name": "Minh", "last_name": "Tran"}, headers=headers)
    assert student.status_code == 201
    invitation = client.post(
        f"/students/{student.json()['id']}/guardians",
        json={"guardian_email": guardian_email, "relationship": "mother", "provision_account": True},
        headers=headers,
    )
    assert invitation.status_code == 201
    return invitation.json()


def password_payload(password: str = "Newpass123", confirm: str | None = None, **overrides) -> dict:
    payload = {**PROFILE, "new_password": password, "confirm_password": confirm or password}
    payload.update(overrides)
    return payload


def test_resolve_state_for_missing_user():
    assert resolve_onboarding_state(None) is OnboardingState.UNAUTHENTICATED


def test_resolve_state_prefers_password_replacement():
    user = User(email="g@example.com", role="guardian", must_change_password=True)
    assert resolve_onboarding_state(user) is OnboardingState.PENDING_PASSWORD


def test_resolve_state_guardian_without_profile():
    user = User(email="g@example.com", role="guardian", must_change_password=False, first_name="Lan")
    assert resolve_onboarding_state(user) is OnboardingState.PENDING_PROFILE


def test_resolve_state_educator_without_profile_is_ready():
    user = User(email="t@example.com", role="educator", must_change_password=False)
    assert resolve_onboarding_state(user) is OnboardingState.READY


def test_transition_table():
    assert transition(OnboardingState.PENDING_PASSWORD, OnboardingState.PENDING_PROFILE) is OnboardingState.PENDING_PROFILE
    assert transition(OnboardingState.READY, OnboardingState.UNAUTHENTICATED) is OnboardingState.UNAUTHENTICATED
    with pytest.raises(OnboardingTransitionError):
        transition(OnboardingState.PENDING_PASSWORD, OnboardingState.READY)
    with pytest.raises(OnboardingTransitionError):
        transition(OnboardingState.READY, OnboardingState.PENDING_PROFILE)


def test_invite_before_signup_activates_after_password_replacement():
    client = TestClient(app)
    educator_token = register_and_login(client, "teacher@example.com", "Secret123")
    invitation = invite_with_account(client, educator_token, "parent@example.com")
    temporary_password = invitation["credentials"]["temporary_password"]

    login = client.post("/auth/login", json={"email": "parent@example.com", "password": temporary_password})
    assert login.status_code == 200
    assert login.json()["onboarding_state"] == "authenticated_pending_password"
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = client.post("/onboarding/password", json=password_payload(), headers=headers)
    assert response.status_code == 200
    assert response.json()["state"] == "ready"
    assert response.json()["must_change_password"] is False

    with SessionLocal() as db:
        guardian = db.query(User).filter(User.email == "parent@example.com").first()
        link = db.get(GuardianLink, invitation["id"])
        assert link.status == "active"
        assert link.guardian_id == guardian.id
        assert link.activated_at is not None
        assert guardian.must_change_password is False
        assert guardian.phone == "0912345678"
        assert verify_password("Newpass123", guardian.hashed_password)


def test_password_replacement_service_activates_links():
    with SessionLocal() as db:
        educator = User(email="teacher@example.com", hashed_password="x", role="educator", email_verified=True)
        guardian = User(
            email="parent@example.com",
            hashed_password=get_password_hash("Temp12345"),
            role="guardian",
            must_change_password=True,
            email_verified=True,
        )
        db.add_all([educator, guardian])
        db.commit()

        student = Student(educator_id=educator.id, first_name="Minh", last_name="Tran")
        db.add(student)
        db.commit()
        link = GuardianLink(student_id=student.id, guardian_email="parent@example.com", invited_by=educator.id)
        db.add(link)
        db.commit()
        link_id = link.id

        result = complete_password_replacement(db, guardian, PasswordReplacementRequest(**password_payload()))
        assert result.state is OnboardingState.READY
        assert result.activated_links == 1

        stored = db.get(GuardianLink, link_id)
        db.refresh(stored)
        assert stored.status == "active"


@pytest.mark.parametrize(
    "payload",
    [
        password_payload(password="short1A"),
        password_payload(confirm="Different123"),
        password_payload(phone="0212345678"),
        password_payload(phone="09123"),
        password_payload(first_name="   "),
    ],
)
def test_validation_failures_apply_nothing(payload):
    client = TestClient(app)
    educator_token = register_and_login(client, "teacher@example.com", "Secret123")
    invitation = invite_with_account(client, educator_token, "parent@example.com")
    temporary_password = invitation["credentials"]["temporary_password"]
    token = client.post(
        "/auth/login", json={"email": "parent@example.com", "password": temporary_password}
    ).json()["access_token"]

    response = client.post("/onboarding/password", json=payload, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 422

    with SessionLocal() as db:
        guardian = db.query(User).filter(User.email == "parent@example.com").first()
        assert guardian.must_change_password is True
        assert guardian.first_name is None
        assert guardian.phone is None
        assert verify_password(temporary_password, guardian.hashed_password)


def test_activation_failure_does_not_block_onboarding(monkeypatch):
    client = TestClient(app)
    educator_token = register_and_login(client, "teacher@example.com", "Secret123")

    def broken(*args, **kwargs):
        raise OperationalError("UPDATE guardian_links", {}, Exception("store unreachable"))

    monkeypatch.setattr(activation, "_transition_link", broken)

    invitation = invite_with_account(client, educator_token, "parent@example.com")
    temporary_password = invitation["credentials"]["temporary_password"]
    login = client.post("/auth/login", json={"email": "parent@example.com", "password": temporary_password})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = client.post("/onboarding/password", json=password_payload(), headers=headers)
    assert response.status_code == 200
    assert response.json()["state"] == "ready"
    assert response.json()["activated_links"] == 0

    with SessionLocal() as db:
        guardian = db.query(User).filter(User.email == "parent@example.com").first()
        assert guardian.must_change_password is False
        assert guardian.first_name == "Lan"
        assert verify_password("Newpass123", guardian.hashed_password)
        assert db.get(GuardianLink, invitation["id"]).status == "invited"

    # Next sign-in picks the leftover invitation up.
    monkeypatch.undo()
    assert client.post("/auth/login", json={"email": "parent@example.com", "password": "Newpass123"}).status_code == 200
    with SessionLocal() as db:
        assert db.get(GuardianLink, invitation["id"]).status == "active"


def test_profile_only_path_for_self_registered_guardian():
    client = TestClient(app)
    token = register_and_login(client, "self@example.com", "Secret123", role="guardian")
    headers = {"Authorization": f"Bearer {token}"}

    status = client.get("/onboarding/status", headers=headers)
    assert status.json()["state"] == "authenticated_pending_profile"

    response = client.post(
        "/onboarding/profile",
        json={**PROFILE, "occupation": "Nurse", "address": "12 Le Loi"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["state"] == "ready"

    with SessionLocal() as db:
        guardian = db.query(User).filter(User.email == "self@example.com").first()
        assert guardian.occupation == "Nurse"
        assert guardian.address == "12 Le Loi"


def test_profile_completion_activates_links():
    with SessionLocal() as db:
        educator = User(email="teacher@example.com", hashed_password="x", role="educator", email_verified=True)
        guardian = User(email="parent@example.com", hashed_password="x", role="guardian", email_verified=True)
        db.add_all([educator, guardian])
        db.commit()

        student = Student(educator_id=educator.id, first_name="Minh", last_name="Tran")
        db.add(student)
        db.commit()
        db.add(GuardianLink(student_id=student.id, guardian_email="parent@example.com", invited_by=educator.id))
        db.commit()

        result = complete_profile(db, guardian, ProfileCompletionRequest(**PROFILE))
        assert result.state is OnboardingState.READY
        assert result.activated_links == 1


def test_profile_step_rejected_while_password_pending():
    client = TestClient(app)
    educator_token = register_and_login(client, "teacher@example.com", "Secret123")
    invitation = invite_with_account(client, educator_token, "parent@example.com")
    token = client.post(
        "/auth/login",
        json={"email": "parent@example.com", "password": invitation["credentials"]["temporary_password"]},
    ).json()["access_token"]

    response = client.post("/onboarding/profile", json=PROFILE, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 409
    assert response.json()["error_code"] == "INVALID_ONBOARDING_TRANSITION"


def test_password_step_rejected_when_ready():
    client = TestClient(app)
    token = register_and_login(client, "teacher@example.com", "Secret123")
    response = client.post("/onboarding/password", json=password_payload(), headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 409


def test_regular_password_change_blocked_while_replacement_pending():
    client = TestClient(app)
    educator_token = register_and_login(client, "teacher@example.com", "Secret123")
    invitation = invite_with_account(client, educator_token, "parent@example.com")
    temporary_password = invitation["credentials"]["temporary_password"]
    token = client.post(
        "/auth/login", json={"email": "parent@example.com", "password": temporary_password}
    ).json()["access_token"]

    response = client.post(
        "/auth/change-password",
        json={"current_password": temporary_password, "new_password": "Newpass123", "confirm_password": "Newpass123"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "ONBOARDING_INCOMPLETE"


def test_password_replacement_activates_invitation_sent_after_first_sign_in():
    client = TestClient(app)
    educator_token = register_and_login(client, "teacher@example.com", "Secret123")
    first = invite_with_account(client, educator_token, "parent@example.com")
    login = client.post(
        "/auth/login",
        json={"email": "parent@example.com", "password": first["credentials"]["temporary_password"]},
    )
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    # A second student is linked while the guardian is still on the password step.
    second = invite_with_account(client, educator_token, "parent@example.com")
    assert second["credentials"] is None

    response = client.post("/onboarding/password", json=password_payload(), headers=headers)
    assert response.status_code == 200
    assert response.json()["state"] == "ready"
    assert response.json()["activated_links"] == 1

    with SessionLocal() as db:
        assert db.get(GuardianLink, first["id"]).status == "active"
        assert db.get(GuardianLink, second["id"]).status == "active"
