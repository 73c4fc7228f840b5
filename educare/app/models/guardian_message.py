from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from educare.app.db.base_class import Base
from educare.app.core.time import utc_now


class GuardianMessage(Base):
    """Message about one student between a guardian and the student's educator."""

    __tablename__ = "guardian_messages"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String(200), nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    read_at = Column(DateTime, nullable=True)

    student = relationship("Student", back_populates="messages", foreign_keys=[student_id])
    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
