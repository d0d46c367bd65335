from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from diaglab.data.database import Base
from diaglab.data.models.user import utcnow
from diaglab.domain.rules import ACTIVE_APPOINTMENT_STATUSES


class AppointmentModel(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)

    appointment_type = Column(String, nullable=False)  # home_collection, lab_visit
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String, nullable=False)  # slot token, e.g. 09:00-12:00
    lab_location = Column(String, nullable=True)
    technician_assigned = Column(String, nullable=True)

    # scheduled, confirmed, in_progress, completed, cancelled
    status = Column(String, nullable=False, default="scheduled")
    customer_notes = Column(Text, nullable=True)
    technician_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    order = relationship("OrderModel", lazy="joined")

    #one active booking per user and slot, enforced by the database
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "user_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=status.in_(ACTIVE_APPOINTMENT_STATUSES),
            postgresql_where=status.in_(ACTIVE_APPOINTMENT_STATUSES),
        ),
    )
