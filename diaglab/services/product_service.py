# diaglab/services/product_service.py
from sqlalchemy.orm import Session

from diaglab.data.models.product import ProductModel
from diaglab.domain.errors import NotFound, ValidationFailed
from diaglab.domain.rules import PRODUCT_CATEGORIES, compute_discount, clean_text
from diaglab.domain.schemas import ProductIn, ProductOut
from diaglab.repos.product_repo import ProductRepo
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)

_CATEGORY_LIST = ", ".join(PRODUCT_CATEGORIES)


class ProductService:
    """Catalog management. Products are shared, read-only data for carts and orders."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    def list_products(self, **filters) -> list[ProductModel]:
        return self.repo.list_products(**filters)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_product(self, payload: ProductIn) -> ProductModel:
        if not payload.name or len(payload.name.strip()) < 3:
            raise ValidationFailed("INVALID_NAME", "Name is required and must be at least 3 characters")

        if payload.category not in PRODUCT_CATEGORIES:
            raise ValidationFailed(
                "INVALID_CATEGORY",
                f"Category is required and must be one of: {_CATEGORY_LIST}",
            )

        if payload.price is None or payload.price <= 0:
            raise ValidationFailed("INVALID_PRICE", "Price is required and must be a positive number")

        if payload.original_price is None or payload.original_price <= 0:
            raise ValidationFailed(
                "INVALID_ORIGINAL_PRICE",
                "Original price is required and must be a positive number",
            )

        self._validate_optional_numbers(payload)

        discount = payload.discount_percentage
        if discount is None:
            discount = compute_discount(payload.price, payload.original_price)

        product = ProductModel(
            name=payload.name.strip(),
            description=clean_text(payload.description),
            category=payload.category,
            subcategory=clean_text(payload.subcategory),
            price=payload.price,
            original_price=payload.original_price,
            discount_percentage=discount,
            home_collection_available=_default(payload.home_collection_available, True),
            report_delivery_hours=_default(payload.report_delivery_hours, 24),
            tests_included=_default(payload.tests_included, 1),
            is_popular=_default(payload.is_popular, False),
            is_safe=_default(payload.is_safe, True),
            image_url=clean_text(payload.image_url),
        )

        created = self.repo.add_product(product)
        logger.info(f"Created product {created.id} '{created.name}' ({created.category})")
        return created

    def update_product(self, product_id: int, payload: ProductIn) -> ProductModel:
        product = self.get_product(product_id)
        sent = payload.model_fields_set

        if "name" in sent and (not payload.name or len(payload.name.strip()) < 3):
            raise ValidationFailed("INVALID_NAME", "Name must be at least 3 characters")

        if "category" in sent and payload.category not in PRODUCT_CATEGORIES:
            raise ValidationFailed("INVALID_CATEGORY", f"Category must be one of: {_CATEGORY_LIST}")

        if "price" in sent and (payload.price is None or payload.price <= 0):
            raise ValidationFailed("INVALID_PRICE", "Price must be a positive number")

        if "original_price" in sent and (payload.original_price is None or payload.original_price <= 0):
            raise ValidationFailed("INVALID_ORIGINAL_PRICE", "Original price must be a positive number")

        self._validate_optional_numbers(payload)

        updates = {}
        if "name" in sent:
            updates["name"] = payload.name.strip()
        if "description" in sent:
            updates["description"] = clean_text(payload.description)
        if "category" in sent:
            updates["category"] = payload.category
        if "subcategory" in sent:
            updates["subcategory"] = clean_text(payload.subcategory)
        if "price" in sent:
            updates["price"] = payload.price
        if "original_price" in sent:
            updates["original_price"] = payload.original_price
        if "image_url" in sent:
            updates["image_url"] = clean_text(payload.image_url)

        #null means "leave as is" for the non-nullable columns
        for field in (
            "discount_percentage",
            "home_collection_available",
            "report_delivery_hours",
            "tests_included",
            "is_popular",
            "is_safe",
        ):
            value = getattr(payload, field)
            if field in sent and value is not None:
                updates[field] = value

        price_changed = "price" in updates or "original_price" in updates
        if price_changed and "discount_percentage" not in updates:
            price = updates.get("price", product.price)
            original = updates.get("original_price", product.original_price)
            if original:
                updates["discount_percentage"] = compute_discount(price, original)

        for field, value in updates.items():
            setattr(product, field, value)

        updated = self.repo.save(product)
        logger.info(f"Updated product {product_id}: {sorted(updates)}")
        return updated

    def delete_product(self, product_id: int) -> dict:
        product = self.get_product(product_id)
        snapshot = ProductOut.model_validate(product)

        self.repo.delete_product(product)
        logger.info(f"Deleted product {product_id}")

        return {"message": "Product deleted successfully", "product": snapshot}

    @staticmethod
    def _validate_optional_numbers(payload: ProductIn):
        discount = payload.discount_percentage
        if discount is not None and not 0 <= discount <= 100:
            raise ValidationFailed("INVALID_DISCOUNT_PERCENTAGE", "Discount percentage must be between 0 and 100")

        if payload.report_delivery_hours is not None and payload.report_delivery_hours <= 0:
            raise ValidationFailed(
                "INVALID_REPORT_DELIVERY_HOURS",
                "Report delivery hours must be a positive integer",
            )

        if payload.tests_included is not None and payload.tests_included <= 0:
            raise ValidationFailed("INVALID_TESTS_INCLUDED", "Tests included must be a positive integer")


def _default(value, fallback):
    return fallback if value is None else value
