# diaglab/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from diaglab.data.models.cart_item import CartItemModel
from diaglab.domain.errors import NotFound, ValidationFailed
from diaglab.domain.rules import is_valid_quantity, merged_quantity, line_total, money
from diaglab.domain.schemas import CartItemIn, CartItemOut
from diaglab.repos.cart_repo import CartRepo
from diaglab.repos.product_repo import ProductRepo
from diaglab.services.lock_service import LockService, locked_cart
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)


def _check_quantity(quantity: Any):
    if not is_valid_quantity(quantity):
        raise ValidationFailed(
            "INVALID_QUANTITY",
            "Quantity must be a positive integer between 1 and 10",
        )


class CartService:
    """
    Use cases for the cart domain.
    Commands (add, set quantity, remove, clear) mutate state under the user's
    cart lock, the query (get) only reads.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.lock_service = lock_service

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, user_id: str) -> Dict[str, Any]:
        #lines whose product disappeared from the catalog are not shown
        items = [i for i in self.repo.get_cart_items(user_id) if i.product is not None]

        total = sum((line_total(i.product.price, i.quantity) for i in items), Decimal("0.00"))

        return {
            "items": items,
            "summary": {
                "total_items": sum(i.quantity for i in items),
                "total_amount": money(total),
            },
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_product(self, user_id: str, payload: CartItemIn) -> CartItemModel:
        """
        Add a product or bump the quantity of an existing line.
        The merged quantity is capped at 10.
        """
        if not payload.product_id:
            raise ValidationFailed("MISSING_PRODUCT_ID", "Product ID is required")

        quantity = 1 if payload.quantity in (None, 0) else payload.quantity
        _check_quantity(quantity)

        product = self.products.get_product(payload.product_id)
        if not product:
            raise NotFound("Product not found", "PRODUCT_NOT_FOUND")

        with locked_cart(self.lock_service, user_id):
            try:
                existing = self.repo.get_cart_item(user_id, product.id)

                if existing:
                    new_quantity = merged_quantity(existing.quantity, quantity)
                    logger.info(
                        f"Product {product.id} already in cart of {user_id}, "
                        f"quantity {existing.quantity} -> {new_quantity}"
                    )
                    existing.quantity = new_quantity
                    item = existing
                else:
                    logger.info(f"Adding product {product.id} x{quantity} to cart of {user_id}")
                    item = self.repo.add_cart_item(
                        CartItemModel(
                            user_id=user_id,
                            product_id=product.id,
                            quantity=quantity,
                        )
                    )

                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        self.repo.refresh(item)
        return item

    def set_quantity(self, user_id: str, item_id: int, quantity: Any) -> CartItemModel:
        _check_quantity(quantity)

        with locked_cart(self.lock_service, user_id):
            item = self.repo.get_cart_item_by_id(user_id, item_id)
            if not item:
                raise NotFound("Cart item not found")

            try:
                item.quantity = quantity
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"Cart item {item_id} of {user_id} set to quantity {quantity}")
        self.repo.refresh(item)
        return item

    def remove_item(self, user_id: str, item_id: int) -> Dict[str, Any]:
        with locked_cart(self.lock_service, user_id):
            item = self.repo.get_cart_item_by_id(user_id, item_id)
            if not item:
                raise NotFound("Cart item not found")

            snapshot = CartItemOut.model_validate(item)
            try:
                self.repo.delete_cart_item(item)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"Removed cart item {item_id} of {user_id}")
        return {"message": "Item removed from cart", "item": snapshot}

    def clear_cart(self, user_id: str) -> Dict[str, Any]:
        with locked_cart(self.lock_service, user_id):
            items = self.repo.get_cart_items(user_id)
            #count only the lines that are also returned
            snapshot = [CartItemOut.model_validate(i) for i in items if i.product is not None]

            try:
                deleted = self.repo.delete_all(user_id)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"Cleared {deleted} cart rows of {user_id}")
        return {
            "message": "Cart cleared successfully",
            "cleared_items_count": len(snapshot),
            "deleted_items": snapshot,
        }
