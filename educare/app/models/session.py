"""Tutoring session record, read by guardians through the permission gate."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base
from educare.app.core.time import utc_now


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    educator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    session_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="scheduled")
    log_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    student = relationship("Student", back_populates="sessions", foreign_keys=[student_id])
