# diaglab/domain/schemas.py
"""
Request and response schemas.

Everything on the wire is camelCase, attributes stay snake_case. Request models
are deliberately lenient: field rules and their error codes live in the
services, so a request model only decides the shape of the body and which
fields were sent (``model_fields_set``).
"""
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =====================================================
# REQUESTS
# =====================================================
class ProductIn(CamelModel):
    """Body for product create and update. On update only sent fields apply."""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    price: Optional[float] = None
    original_price: Optional[float] = None
    discount_percentage: Optional[int] = None
    home_collection_available: Optional[bool] = None
    report_delivery_hours: Optional[int] = None
    tests_included: Optional[int] = None
    is_popular: Optional[bool] = None
    is_safe: Optional[bool] = None
    image_url: Optional[str] = None


class CartItemIn(CamelModel):
    product_id: Optional[int] = None
    # checked by the cart rules so that 2.5 or "3" get INVALID_QUANTITY
    quantity: Any = None


class CartQuantityIn(CamelModel):
    quantity: Any = None


class OrderCreate(CamelModel):
    collection_type: Optional[str] = None
    collection_date: Optional[str] = None
    collection_time_slot: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_pincode: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class OrderPatch(CamelModel):
    status: Optional[str] = None
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None
    collection_date: Optional[str] = None
    collection_time_slot: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_pincode: Optional[str] = None
    notes: Optional[str] = None


class AppointmentCreate(CamelModel):
    order_id: Optional[int] = None
    appointment_type: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    lab_location: Optional[str] = None
    customer_notes: Optional[str] = None
    status: Optional[str] = None


class AppointmentPatch(CamelModel):
    appointment_type: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    lab_location: Optional[str] = None
    technician_assigned: Optional[str] = None
    status: Optional[str] = None
    customer_notes: Optional[str] = None
    technician_notes: Optional[str] = None


# =====================================================
# RESPONSES
# =====================================================
class ProductOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    discount_percentage: int
    home_collection_available: bool
    report_delivery_hours: int
    tests_included: int
    is_popular: bool
    is_safe: bool
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductDeleteOut(CamelModel):
    message: str
    product: ProductOut


class CartItemOut(CamelModel):
    id: int
    user_id: str
    product_id: int
    quantity: int
    created_at: datetime
    updated_at: datetime
    product: ProductOut


class CartSummaryOut(CamelModel):
    total_items: int
    total_amount: float


class CartOut(CamelModel):
    items: List[CartItemOut]
    summary: CartSummaryOut


class CartClearOut(CamelModel):
    message: str
    cleared_items_count: int
    deleted_items: List[CartItemOut]


class CartLineDeleteOut(CamelModel):
    message: str
    item: CartItemOut


class OrderOut(CamelModel):
    id: int
    order_number: str
    user_id: str
    total_amount: float
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    collection_type: Optional[str] = None
    collection_date: Optional[date] = None
    collection_time_slot: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_pincode: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderItemOut(CamelModel):
    id: int
    product_id: Optional[int] = None
    quantity: int
    unit_price: float
    total_price: float
    product_name: Optional[str] = None
    product_description: Optional[str] = None
    product_category: Optional[str] = None
    product_image_url: Optional[str] = None


class OrderDetailOut(OrderOut):
    items: List[OrderItemOut]


class OrderDeleteOut(CamelModel):
    message: str
    order: OrderOut


class AppointmentOrderOut(CamelModel):
    id: int
    order_number: str
    total_amount: float
    status: str
    customer_name: str
    customer_phone: str
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_pincode: Optional[str] = None


class AppointmentOut(CamelModel):
    id: int
    user_id: str
    order_id: Optional[int] = None
    appointment_type: str
    appointment_date: date
    appointment_time: str
    lab_location: Optional[str] = None
    technician_assigned: Optional[str] = None
    status: str
    customer_notes: Optional[str] = None
    technician_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    order: Optional[AppointmentOrderOut] = None


class LineProductOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None


class AppointmentLineOut(CamelModel):
    id: int
    quantity: int
    unit_price: float
    total_price: float
    product: Optional[LineProductOut] = None


class AppointmentDetailOut(AppointmentOut):
    order_items: Optional[List[AppointmentLineOut]] = None


class AppointmentCancelOut(CamelModel):
    message: str
    appointment: AppointmentOut


class HealthOut(BaseModel):
    status: str
    database: str
