from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base

class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (UniqueConstraint("email", "event_id", name="uq_registration_email_event"),)

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False, default="techelons")
    event_id = Column(String, index=True, nullable=False)
    name = Column(String(50), nullable=False)
    email = Column(String, index=True, nullable=False)
    phone = Column(String(10), nullable=False)
    roll_no = Column(String(20), nullable=False)
    college = Column(String, nullable=False)
    other_college = Column(String(100), nullable=True)
    college_id_path = Column(String, nullable=False)
    course = Column(String(50), nullable=False)
    year = Column(String(10), nullable=False)
    query = Column(Text, nullable=True)
    email_sent = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    team_members = relationship(
        "TeamMember",
        back_populates="registration",
        cascade="all, delete-orphan",
        order_by="TeamMember.position",
    )

class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    name = Column(String(50), nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String(10), nullable=False)
    roll_no = Column(String(20), nullable=False)
    college = Column(String, nullable=False)
    other_college = Column(String(100), nullable=True)
    college_id_path = Column(String, nullable=False)

    registration = relationship("Registration", back_populates="team_members")
