# diaglab/services/order_service.py
from datetime import date
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from diaglab.data.models.order import OrderModel
from diaglab.data.models.order_item import OrderItemModel
from diaglab.domain.errors import EmptyCart, NotFound, OrderNumberConflict, ValidationFailed
from diaglab.domain.rules import (
    COLLECTION_TYPES,
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    clean_text,
    format_order_number,
    is_future_date,
    is_valid_phone,
    line_total,
    money,
    order_day,
    parse_date,
)
from diaglab.domain.schemas import OrderCreate, OrderOut, OrderPatch
from diaglab.repos.cart_repo import CartRepo
from diaglab.repos.order_repo import OrderRepo
from diaglab.services.lock_service import LockService, locked_cart
from diaglab.services.notification_service import NotificationService
from diaglab.utils.logging import get_logger
from diaglab.utils.retry import integrity_retry

logger = get_logger(__name__)


def _check_customer_name(value: str | None, message: str):
    if not value or len(value.strip()) < 2:
        raise ValidationFailed("INVALID_CUSTOMER_NAME", message)


def _check_phone(value: str | None):
    if not is_valid_phone(value):
        raise ValidationFailed("INVALID_PHONE", "Valid customer phone number is required")


class OrderService:
    """
    Order domain, kept apart from CartService.
    Checkout reads the cart, writes the order with its lines and empties the
    cart in a single transaction.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_id: int, user_id: str) -> OrderModel:
        order = self.repo.get_order(order_id, user_id)
        if not order:
            raise NotFound("Order not found")
        return order

    def get_order_details(self, order_id: int, user_id: str) -> Dict[str, Any]:
        order = self.get_order(order_id, user_id)

        details = OrderOut.model_validate(order).model_dump()
        details["items"] = [
            {
                "id": item.id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
                "product_name": item.product.name if item.product else None,
                "product_description": item.product.description if item.product else None,
                "product_category": item.product.category if item.product else None,
                "product_image_url": item.product.image_url if item.product else None,
            }
            for item in self.repo.get_order_items(order.id)
        ]
        return details

    def list_orders(self, user_id: str, **filters) -> list[OrderModel]:
        return self.repo.list_orders(user_id, **filters)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, user_id: str, payload: OrderCreate) -> OrderModel:
        """
        Use case: checkout.

        1. validates customer and collection fields
        2. snapshots the cart into order lines at current prices
        3. allocates ORD-YYYYMMDD-NNNN from the per-day counter
        4. clears the cart, all in one transaction
        5. enqueues the order notification
        """
        collection_date = self._validate_new_order(payload)

        with locked_cart(self.lock_service, user_id):
            try:
                order = self._place_order(user_id, payload, collection_date)
            except IntegrityError as e:
                logger.error(f"Order number allocation kept colliding for {user_id}: {e}")
                raise OrderNumberConflict() from e

        logger.info(f"Order {order.order_number} created for {user_id}, total {order.total_amount}")
        self.notification_service.send_order_notification(user_id, order.id, order.order_number)
        return order

    @integrity_retry()
    def _place_order(self, user_id: str, payload: OrderCreate, collection_date: date | None) -> OrderModel:
        try:
            cart_items = [i for i in self.cart_repo.get_cart_items(user_id) if i.product is not None]
            if not cart_items:
                raise EmptyCart()

            lines = [(i, line_total(i.product.price, i.quantity)) for i in cart_items]
            total = sum((amount for _, amount in lines), Decimal("0.00"))

            day = order_day()
            sequence = self.repo.next_sequence(day)

            order = self.repo.add_order(
                OrderModel(
                    user_id=user_id,
                    order_number=format_order_number(day, sequence),
                    total_amount=money(total),
                    status="pending",
                    payment_status="pending",
                    payment_method=payload.payment_method or None,
                    collection_type=payload.collection_type,
                    collection_date=collection_date,
                    collection_time_slot=payload.collection_time_slot or None,
                    customer_name=payload.customer_name.strip(),
                    customer_phone=payload.customer_phone.strip(),
                    customer_address=clean_text(payload.customer_address),
                    customer_city=clean_text(payload.customer_city),
                    customer_pincode=clean_text(payload.customer_pincode),
                    notes=clean_text(payload.notes),
                )
            )

            self.repo.add_order_items(
                [
                    OrderItemModel(
                        order_id=order.id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.product.price,
                        total_price=money(amount),
                    )
                    for item, amount in lines
                ]
            )

            self.cart_repo.delete_all(user_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(order)
        return order

    def update_order(self, order_id: int, user_id: str, patch: OrderPatch) -> OrderModel:
        """
        Applies the sent fields one by one. Status is checked against the
        vocabulary only, orders have no transition table.
        """
        order = self.get_order(order_id, user_id)
        sent = patch.model_fields_set
        updates = {}

        if patch.status:
            if patch.status not in ORDER_STATUSES:
                raise ValidationFailed("INVALID_STATUS", "Invalid status value")
            updates["status"] = patch.status

        if patch.payment_status:
            if patch.payment_status not in PAYMENT_STATUSES:
                raise ValidationFailed("INVALID_PAYMENT_STATUS", "Invalid payment status value")
            updates["payment_status"] = patch.payment_status

        if "payment_method" in sent:
            updates["payment_method"] = patch.payment_method

        if "collection_date" in sent:
            if patch.collection_date:
                parsed = parse_date(patch.collection_date)
                if parsed is None:
                    raise ValidationFailed("INVALID_COLLECTION_DATE", "Collection date is not a valid date")
                updates["collection_date"] = parsed
            else:
                updates["collection_date"] = None

        if "collection_time_slot" in sent:
            updates["collection_time_slot"] = patch.collection_time_slot

        if "customer_name" in sent:
            _check_customer_name(patch.customer_name, "Customer name must be at least 2 characters")
            updates["customer_name"] = patch.customer_name.strip()

        if "customer_phone" in sent:
            _check_phone(patch.customer_phone)
            updates["customer_phone"] = patch.customer_phone.strip()

        for field in ("customer_address", "customer_city", "customer_pincode", "notes"):
            if field in sent:
                updates[field] = clean_text(getattr(patch, field))

        for field, value in updates.items():
            setattr(order, field, value)

        self.repo.commit()
        self.repo.refresh(order)

        logger.info(f"Order {order.order_number} updated: {sorted(updates)}")
        return order

    def delete_order(self, order_id: int, user_id: str) -> Dict[str, Any]:
        """Hard delete, lines first. Appointments keep existing without the order."""
        order = self.get_order(order_id, user_id)
        snapshot = OrderOut.model_validate(order)

        try:
            self.repo.delete_order(order)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {snapshot.order_number} deleted by {user_id}")
        return {"message": "Order deleted successfully", "order": snapshot}

    # =====================================================
    # VALIDATION
    # =====================================================
    @staticmethod
    def _validate_new_order(payload: OrderCreate) -> date | None:
        _check_customer_name(payload.customer_name, "Customer name is required and must be at least 2 characters")
        _check_phone(payload.customer_phone)

        if payload.collection_type not in COLLECTION_TYPES:
            raise ValidationFailed(
                "INVALID_COLLECTION_TYPE",
                "Collection type must be 'home_collection' or 'lab_visit'",
            )

        if payload.collection_type == "home_collection" and not payload.collection_date:
            raise ValidationFailed("MISSING_COLLECTION_DATE", "Collection date is required for home collection")

        if not payload.collection_date:
            return None

        collection_date = parse_date(payload.collection_date)
        if collection_date is None or not is_future_date(collection_date):
            raise ValidationFailed("INVALID_COLLECTION_DATE", "Collection date must be in the future")
        return collection_date
