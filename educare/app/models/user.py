"""Identity model: the authenticated principal for both educators and guardians."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base


class UserRole(str, Enum):
    EDUCATOR = "educator"
    GUARDIAN = "guardian"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.EDUCATOR.value)
    # One-shot flag: set by educator-driven provisioning, cleared by forced password replacement.
    must_change_password = Column(Boolean, nullable=False, default=False)
    email_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    session_version = Column(Integer, nullable=False, default=0)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    occupation = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    students = relationship(
        "Student",
        back_populates="educator",
        cascade="all, delete-orphan",
        foreign_keys="Student.educator_id",
    )
    guardian_links = relationship(
        "GuardianLink",
        back_populates="guardian",
        foreign_keys="GuardianLink.guardian_id",
    )

    @property
    def is_guardian(self) -> bool:
        return self.role == UserRole.GUARDIAN.value

    @property
    def full_name(self) -> str | None:
        return " ".join(part for part in [self.first_name, self.last_name] if part) or None
