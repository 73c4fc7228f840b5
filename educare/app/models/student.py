"""Student record owned by an educator."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base
from educare.app.core.time import utc_now


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    educator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    educator = relationship("User", back_populates="students", foreign_keys=[educator_id])
    sessions = relationship("Session", back_populates="student", cascade="all, delete-orphan")
    behavior_incidents = relationship("BehaviorIncident", back_populates="student", cascade="all, delete-orphan")
    goal_evaluations = relationship("GoalEvaluation", back_populates="student", cascade="all, delete-orphan")
    messages = relationship("GuardianMessage", back_populates="student", cascade="all, delete-orphan")
    guardian_links = relationship(
        "GuardianLink",
        back_populates="student",
        cascade="all, delete-orphan",
        foreign_keys="GuardianLink.student_id",
    )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
