# diaglab/domain/rules.py
"""
Business vocabularies and the pure checks built on them.

Nothing here touches the database, so services and tests share the same rules.
"""
import re
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

PRODUCT_CATEGORIES = ("test", "package", "lifestyle", "organ_test")

ORDER_STATUSES = ("pending", "confirmed", "sample_collected", "processing", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
COLLECTION_TYPES = ("home_collection", "lab_visit")

APPOINTMENT_TYPES = ("home_collection", "lab_visit")
APPOINTMENT_STATUSES = ("scheduled", "confirmed", "in_progress", "completed", "cancelled")
ACTIVE_APPOINTMENT_STATUSES = ("scheduled", "confirmed", "in_progress")

HOME_COLLECTION_SLOTS = ("06:00-09:00", "09:00-12:00", "12:00-15:00", "15:00-18:00", "18:00-21:00")
LAB_VISIT_SLOTS = ("09:00-12:00", "12:00-15:00", "15:00-18:00")

STATUS_TRANSITIONS = {
    "scheduled": ("confirmed", "cancelled"),
    "confirmed": ("in_progress", "cancelled"),
    "in_progress": ("completed", "cancelled"),
    "completed": (),
    "cancelled": (),
}

MAX_CART_QUANTITY = 10
MIN_CART_QUANTITY = 1

PHONE_RE = re.compile(r"^[+]?[\d\s\-\(\)]{10,15}$")

_CENTS = Decimal("0.01")


# =====================================================
# PRODUCTS
# =====================================================
def compute_discount(price: float, original_price: float) -> int:
    """Discount in whole percent, rounded half up and clamped to [0, 100]."""
    original = Decimal(str(original_price))
    ratio = (original - Decimal(str(price))) / original * 100
    percent = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(100, percent))


# =====================================================
# CART / MONEY
# =====================================================
def is_valid_quantity(value: Any) -> bool:
    #bool is an int subclass, True must not count as 1
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_CART_QUANTITY <= value <= MAX_CART_QUANTITY


def merged_quantity(existing: int, requested: int) -> int:
    return min(existing + requested, MAX_CART_QUANTITY)


def line_total(price: float, quantity: int) -> Decimal:
    return (Decimal(str(price)) * quantity).quantize(_CENTS, rounding=ROUND_HALF_UP)


def money(value: Decimal) -> float:
    return float(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


# =====================================================
# ORDERS
# =====================================================
def is_valid_phone(value: Any) -> bool:
    return isinstance(value, str) and PHONE_RE.match(value) is not None


def order_day(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%d")


def order_number_prefix(day: str) -> str:
    return f"ORD-{day}-"


def format_order_number(day: str, sequence: int) -> str:
    return f"{order_number_prefix(day)}{sequence:04d}"


# =====================================================
# DATES / SLOTS / STATUS
# =====================================================
def parse_date(value: Any) -> date | None:
    """Accepts ISO dates and ISO datetimes, returns None for anything else."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return None


def is_future_date(value: date, today: date | None = None) -> bool:
    """Strictly after today; same-day bookings are rejected."""
    today = today or date.today()
    return value > today


def allowed_slots(appointment_type: str) -> tuple[str, ...]:
    if appointment_type == "lab_visit":
        return LAB_VISIT_SLOTS
    return HOME_COLLECTION_SLOTS


def is_valid_slot(slot: Any, appointment_type: str) -> bool:
    return slot in allowed_slots(appointment_type)


def can_transition(current: str, new: str) -> bool:
    return new in STATUS_TRANSITIONS.get(current, ())


def clean_text(value: Any) -> str | None:
    """Trim free text, empty strings become None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
