from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime

from diaglab.data.database import Base
from diaglab.data.models.user import utcnow


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False, index=True)  # test, package, lifestyle, organ_test
    subcategory = Column(String, nullable=True)  # diabetes, heart, liver...

    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    original_price = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    discount_percentage = Column(Integer, nullable=False, default=0)

    home_collection_available = Column(Boolean, nullable=False, default=True)
    report_delivery_hours = Column(Integer, nullable=False, default=24)
    tests_included = Column(Integer, nullable=False, default=1)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_safe = Column(Boolean, nullable=False, default=True)
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
