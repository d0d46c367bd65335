# diaglab/repos/cart_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from diaglab.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: str) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.user_id == user_id)
                .order_by(CartItemModel.id)
            ).scalars().unique().all()
        )

    def get_cart_item(self, user_id: str, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
            )
        ).scalars().unique().one_or_none()

    def get_cart_item_by_id(self, user_id: str, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == item_id,
                CartItemModel.user_id == user_id,
            )
        ).scalars().unique().one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_all(self, user_id: str) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.user_id == user_id)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, item: CartItemModel):
        self.db.refresh(item)
