from typing import Dict, List, Mapping, Tuple

from sqlalchemy.orm import Session

from rmerch.errors import NotFoundError, ValidationError
from rmerch.models.product import Product
from rmerch.repositories.product_repo import ProductRepository
from rmerch.utils.logging import get_logger
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.catalogue")

UPDATABLE_FIELDS = ("name", "description", "price_cents", "stock", "images")


def _check_price(price_cents):
    if not isinstance(price_cents, int) or isinstance(price_cents, bool) or price_cents <= 0:
        raise ValidationError("Price must be a number greater than 0")


def _check_stock(stock):
    if not isinstance(stock, int) or isinstance(stock, bool) or stock < 0:
        raise ValidationError("Stock must be a number greater than or equal to 0")


def _check_images(images):
    if not images or not isinstance(images, list):
        raise ValidationError("At least one product image is required")


class CatalogueService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)

    def list_products(self, page: int = 1, size: int = 10) -> Tuple[List[Product], int]:
        return self.repo.list(page=page, size=size)

    def list_by_owner(self, owner_id: str) -> List[Product]:
        return self.repo.list_by_owner(owner_id)

    def get_product(self, product_id: int) -> Product:
        p = self.repo.get(product_id)
        if not p:
            raise NotFoundError("Product not found")
        return p

    def create_product(self, data: Mapping) -> Product:
        name = data.get("name")
        if not name or data.get("price_cents") is None or data.get("stock") is None:
            raise ValidationError("Missing required fields: name, priceCents, stock")
        _check_price(data["price_cents"])
        _check_stock(data["stock"])
        _check_images(data.get("images"))

        fields = {
            "name": name,
            "description": data.get("description"),
            "price_cents": data["price_cents"],
            "stock": data["stock"],
            "images": list(data["images"]),
            "owner_id": data.get("owner_id") or None,
            "owner_name": data.get("owner_name"),
            "is_official": bool(data.get("is_official", False)),
        }
        with smart_transaction(self.db):
            product = self.repo.create(**fields)
        if self.db.in_transaction():
            self.db.commit()
        log.info("product %s created (%s)", product.id, product.name)
        return product

    def update_product(self, product_id: int, changes: Mapping) -> Product:
        """Partial update restricted to UPDATABLE_FIELDS."""
        if not changes:
            raise ValidationError("At least one field must be provided for the update")
        invalid = [k for k in changes if k not in UPDATABLE_FIELDS]
        if invalid:
            raise ValidationError(
                f"Fields not allowed for update: {', '.join(invalid)}. "
                f"Only these can be updated: {', '.join(UPDATABLE_FIELDS)}"
            )
        if "price_cents" in changes:
            _check_price(changes["price_cents"])
        if "stock" in changes:
            _check_stock(changes["stock"])
        if "images" in changes:
            _check_images(changes["images"])
        if "name" in changes and not changes["name"]:
            raise ValidationError("Product name cannot be empty")

        with smart_transaction(self.db):
            product = self.get_product(product_id)
            fields: Dict = dict(changes)
            if "images" in fields:
                fields["images"] = list(fields["images"])
            self.repo.update(product, **fields)
        if self.db.in_transaction():
            self.db.commit()
        return product

    def delete_product(self, product_id: int) -> Product:
        with smart_transaction(self.db):
            product = self.get_product(product_id)
            self.repo.delete(product)
        if self.db.in_transaction():
            self.db.commit()
        log.info("product %s deleted", product_id)
        return product
