# diaglab/api/routers/products.py
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from diaglab.api.deps import Page, get_current_user, json_body, optional_id, parse_body, required_id
from diaglab.data.database import get_db
from diaglab.data.models.user import UserModel
from diaglab.domain.schemas import ProductDeleteOut, ProductIn, ProductOut
from diaglab.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


def get_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


@router.get("", response_model=Union[ProductOut, List[ProductOut]])
def get_products(
    current_user: UserModel = Depends(get_current_user),
    product_id: Optional[int] = Depends(optional_id),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    is_popular: Optional[str] = Query(None),
    sort: str = Query("createdAt"),
    order: str = Query("desc"),
    page: Page = Depends(),
    svc: ProductService = Depends(get_service),
):
    """One product with ?id=, otherwise a filtered, sorted page of the catalog."""
    if product_id is not None:
        return svc.get_product(product_id)

    return svc.list_products(
        category=category,
        subcategory=subcategory,
        popular_only=is_popular == "true",
        search=search,
        sort=sort,
        order=order,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    current_user: UserModel = Depends(get_current_user),
    body: dict = Depends(json_body),
    svc: ProductService = Depends(get_service),
):
    return svc.create_product(parse_body(ProductIn, body))


@router.put("", response_model=ProductOut)
def update_product(
    current_user: UserModel = Depends(get_current_user),
    product_id: int = Depends(required_id),
    body: dict = Depends(json_body),
    svc: ProductService = Depends(get_service),
):
    return svc.update_product(product_id, parse_body(ProductIn, body))


@router.delete("", response_model=ProductDeleteOut)
def delete_product(
    current_user: UserModel = Depends(get_current_user),
    product_id: int = Depends(required_id),
    svc: ProductService = Depends(get_service),
):
    return svc.delete_product(product_id)
