from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from diaglab.data.database import Base
from diaglab.data.models.user import utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    order_number = Column(String, nullable=False, unique=True)
    total_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)

    # pending, confirmed, sample_collected, processing, completed, cancelled
    status = Column(String, nullable=False, default="pending")
    # pending, paid, failed, refunded
    payment_status = Column(String, nullable=False, default="pending")
    payment_method = Column(String, nullable=True)

    collection_type = Column(String, nullable=True)  # home_collection, lab_visit
    collection_date = Column(Date, nullable=True)
    collection_time_slot = Column(String, nullable=True)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    customer_address = Column(Text, nullable=True)
    customer_city = Column(String, nullable=True)
    customer_pincode = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )
