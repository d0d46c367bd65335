from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from diaglab.data.database import Base
from diaglab.data.models.user import utcnow


class SessionModel(Base):
    """Bearer sessions issued by the external auth service. Read-only here."""

    __tablename__ = "sessions"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String, nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("UserModel")
