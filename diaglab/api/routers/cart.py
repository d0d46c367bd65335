# diaglab/api/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from diaglab.api.deps import get_current_user, get_lock_service, json_body, parse_body, required_id
from diaglab.data.database import get_db
from diaglab.data.models.user import UserModel
from diaglab.domain.schemas import (
    CartClearOut,
    CartItemIn,
    CartItemOut,
    CartLineDeleteOut,
    CartOut,
    CartQuantityIn,
)
from diaglab.services.cart_service import CartService
from diaglab.services.lock_service import LockService

router = APIRouter(prefix="/api/cart", tags=["cart"])


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, lock_service=lock_service)


@router.get("", response_model=CartOut)
def get_cart(
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.get_cart(current_user.id)


@router.post("", response_model=CartItemOut, status_code=201)
def add_item(
    current_user: UserModel = Depends(get_current_user),
    body: dict = Depends(json_body),
    svc: CartService = Depends(get_service),
):
    return svc.add_product(current_user.id, parse_body(CartItemIn, body))


@router.delete("", response_model=CartClearOut)
def clear_cart(
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.clear_cart(current_user.id)


@router.put("/items", response_model=CartItemOut)
def set_item_quantity(
    current_user: UserModel = Depends(get_current_user),
    item_id: int = Depends(required_id),
    body: dict = Depends(json_body),
    svc: CartService = Depends(get_service),
):
    payload = parse_body(CartQuantityIn, body)
    return svc.set_quantity(current_user.id, item_id, payload.quantity)


@router.delete("/items", response_model=CartLineDeleteOut)
def remove_item(
    current_user: UserModel = Depends(get_current_user),
    item_id: int = Depends(required_id),
    svc: CartService = Depends(get_service),
):
    return svc.remove_item(current_user.id, item_id)
