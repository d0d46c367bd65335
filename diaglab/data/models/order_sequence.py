from sqlalchemy import Column, Integer, String

from diaglab.data.database import Base


class OrderSequenceModel(Base):
    """Per-day counter behind ORD-YYYYMMDD-NNNN order numbers."""

    __tablename__ = "order_sequences"

    day = Column(String(8), primary_key=True)  # YYYYMMDD
    last_value = Column(Integer, nullable=False, default=0)
