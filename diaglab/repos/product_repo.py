# diaglab/repos/product_repo.py
from sqlalchemy import select, or_, asc, desc
from sqlalchemy.orm import Session

from diaglab.data.models.product import ProductModel

_SORT_COLUMNS = {
    "price": ProductModel.price,
    "name": ProductModel.name,
}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(
        self,
        *,
        category: str | None = None,
        subcategory: str | None = None,
        popular_only: bool = False,
        search: str | None = None,
        sort: str = "createdAt",
        order: str = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> list[ProductModel]:
        query = select(ProductModel)

        if category:
            query = query.where(ProductModel.category == category)
        if subcategory:
            query = query.where(ProductModel.subcategory == subcategory)
        if popular_only:
            query = query.where(ProductModel.is_popular.is_(True))
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    ProductModel.name.ilike(pattern),
                    ProductModel.description.ilike(pattern),
                )
            )

        column = _SORT_COLUMNS.get(sort, ProductModel.created_at)
        direction = asc if order == "asc" else desc
        query = query.order_by(direction(column), direction(ProductModel.id))

        return list(self.db.execute(query.limit(limit).offset(offset)).scalars().all())

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def save(self, product: ProductModel) -> ProductModel:
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()
