# diaglab/api/routers/orders.py
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from diaglab.api.deps import (
    Page,
    get_current_user,
    get_lock_service,
    json_body,
    optional_id,
    parse_body,
    required_id,
)
from diaglab.data.database import get_db
from diaglab.data.models.user import UserModel
from diaglab.domain.schemas import OrderCreate, OrderDeleteOut, OrderDetailOut, OrderOut, OrderPatch
from diaglab.services.lock_service import LockService
from diaglab.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> OrderService:
    return OrderService(db=db, lock_service=lock_service)


@router.get("", response_model=Union[OrderDetailOut, List[OrderOut]])
def get_orders(
    current_user: UserModel = Depends(get_current_user),
    order_id: Optional[int] = Depends(optional_id),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    sort: str = Query("createdAt"),
    order: str = Query("desc"),
    page: Page = Depends(),
    svc: OrderService = Depends(get_service),
):
    """One order with its lines when ?id= is given, otherwise the caller's orders."""
    if order_id is not None:
        return svc.get_order_details(order_id, current_user.id)

    return svc.list_orders(
        current_user.id,
        search=search,
        status=status,
        payment_status=payment_status,
        sort=sort,
        order=order,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    current_user: UserModel = Depends(get_current_user),
    body: dict = Depends(json_body),
    svc: OrderService = Depends(get_service),
):
    """
    Checkout: turns the caller's cart into an order and empties the cart.
    """
    return svc.create_order(current_user.id, parse_body(OrderCreate, body))


@router.put("", response_model=OrderOut)
def update_order(
    current_user: UserModel = Depends(get_current_user),
    order_id: int = Depends(required_id),
    body: dict = Depends(json_body),
    svc: OrderService = Depends(get_service),
):
    return svc.update_order(order_id, current_user.id, parse_body(OrderPatch, body))


@router.delete("", response_model=OrderDeleteOut)
def delete_order(
    current_user: UserModel = Depends(get_current_user),
    order_id: int = Depends(required_id),
    svc: OrderService = Depends(get_service),
):
    return svc.delete_order(order_id, current_user.id)
