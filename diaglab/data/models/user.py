from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Boolean

from diaglab.data.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    email_verified = Column(Boolean, nullable=False, default=False)

    # patient, lab_technician, collection_technician, admin
    role = Column(String, nullable=False, default="patient")
    phone_number = Column(String, nullable=True)
    employee_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
