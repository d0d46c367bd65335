# diaglab/repos/order_repo.py
from sqlalchemy import select, update, func, or_, asc, desc
from sqlalchemy.orm import Session

from diaglab.data.models.appointment import AppointmentModel
from diaglab.data.models.order import OrderModel
from diaglab.data.models.order_item import OrderItemModel
from diaglab.data.models.order_sequence import OrderSequenceModel
from diaglab.domain.rules import order_number_prefix

_SORT_COLUMNS = {
    "totalAmount": OrderModel.total_amount,
    "status": OrderModel.status,
    "paymentStatus": OrderModel.payment_status,
}


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_order(self, order_id: int, user_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(
                OrderModel.id == order_id,
                OrderModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def list_orders(
        self,
        user_id: str,
        *,
        search: str | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        sort: str = "createdAt",
        order: str = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> list[OrderModel]:
        query = select(OrderModel).where(OrderModel.user_id == user_id)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    OrderModel.order_number.ilike(pattern),
                    OrderModel.customer_name.ilike(pattern),
                    OrderModel.customer_phone.ilike(pattern),
                )
            )
        if status:
            query = query.where(OrderModel.status == status)
        if payment_status:
            query = query.where(OrderModel.payment_status == payment_status)

        column = _SORT_COLUMNS.get(sort, OrderModel.created_at)
        direction = asc if order == "asc" else desc
        query = query.order_by(direction(column), direction(OrderModel.id))

        return list(self.db.execute(query.limit(limit).offset(offset)).scalars().all())

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.id)
            ).scalars().unique().all()
        )

    def count_orders_with_prefix(self, prefix: str) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.order_number.like(f"{prefix}%"))
        ).scalar_one()

    def next_sequence(self, day: str) -> int:
        """
        Bumps the per-day counter inside the caller's transaction.

        The UPDATE takes a row lock, so concurrent checkouts on the same day
        queue up instead of reading the same value. The day's first order seeds
        the counter from the orders already carrying the prefix.
        """
        bumped = self.db.execute(
            update(OrderSequenceModel)
            .where(OrderSequenceModel.day == day)
            .values(last_value=OrderSequenceModel.last_value + 1)
            .execution_options(synchronize_session=False)
        ).rowcount

        if not bumped:
            existing = self.count_orders_with_prefix(order_number_prefix(day))
            self.db.add(OrderSequenceModel(day=day, last_value=existing + 1))
            # IntegrityError here means another checkout seeded the same day first
            self.db.flush()

        return self.db.execute(
            select(OrderSequenceModel.last_value).where(OrderSequenceModel.day == day)
        ).scalar_one()

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, items: list[OrderItemModel]) -> None:
        self.db.add_all(items)
        self.db.flush()

    def delete_order(self, order: OrderModel) -> None:
        # appointments outlive the order, lines go before the order row
        self.db.execute(
            update(AppointmentModel)
            .where(AppointmentModel.order_id == order.id)
            .values(order_id=None)
            .execution_options(synchronize_session=False)
        )
        for item in self.get_order_items(order.id):
            self.db.delete(item)
        self.db.flush()
        self.db.delete(order)
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, order: OrderModel):
        self.db.refresh(order)
