"""Educator evaluation of a developmental goal, read by guardians through the permission gate."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base
from educare.app.core.time import utc_now

GOAL_DOMAINS = ("cognitive", "motor", "language", "social", "self_care")
EVALUATION_RESULTS = ("achieved", "partially_achieved", "not_achieved")


class GoalEvaluation(Base):
    __tablename__ = "goal_evaluations"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=True, index=True)
    domain = Column(String(20), nullable=False)
    goal_description = Column(Text, nullable=False)
    result = Column(String(20), nullable=False, default="not_achieved")
    notes = Column(Text, nullable=True)
    evaluated_at = Column(DateTime, nullable=False, default=utc_now)

    student = relationship("Student", back_populates="goal_evaluations", foreign_keys=[student_id])
