from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship

from diaglab.data.database import Base
from diaglab.data.models.user import utcnow


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # kept on the line as a snapshot, the catalog entry may be deleted later
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    quantity = Column(Integer, nullable=False)
    # price snapshot taken when the order was placed
    unit_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    total_price = Column(Numeric(12, 2, asdecimal=False), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    order = relationship("OrderModel", back_populates="items")
    product = relationship("ProductModel", lazy="joined")
