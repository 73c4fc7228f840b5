from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base
from educare.app.core.time import utc_now


class BehaviorIncident(Base):
    __tablename__ = "behavior_incidents"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    occurred_at = Column(DateTime, nullable=False, default=utc_now)
    description = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False, default="low")

    student = relationship("Student", back_populates="behavior_incidents", foreign_keys=[student_id])
