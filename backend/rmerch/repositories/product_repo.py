from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from rmerch.models.product import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        qry = self.db.query(Product).filter(Product.id == product_id)
        if for_update:
            # no-op on SQLite, row lock on engines that support it
            qry = qry.with_for_update().populate_existing()
        return qry.first()

    def get_many(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: p for p in rows}

    def list(self, page: int = 1, size: int = 10) -> Tuple[List[Product], int]:
        query = self.db.query(Product)
        total = query.count()
        items = (
            query.order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return items, total

    def list_by_owner(self, owner_id: str) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.owner_id == owner_id)
            .order_by(Product.id)
            .all()
        )

    def create(self, **fields) -> Product:
        p = Product(**fields)
        self.db.add(p)
        self.db.flush()
        return p

    def update(self, product: Product, **fields) -> Product:
        for key, value in fields.items():
            setattr(product, key, value)
        self.db.flush()
        return product

    def delete(self, product: Product):
        self.db.delete(product)
        self.db.flush()

    def decrement_stock(self, product_id: int, qty: int) -> bool:
        """
        Conditionally take `qty` units: a single UPDATE that only matches while
        stock >= qty, so the check and the write are one statement for the engine.
        Returns False when nothing was decremented.
        """
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= qty)
            .values(stock=Product.stock - qty)
        )
        return result.rowcount == 1

    def set_rating(self, product_id: int, average: float, count: int):
        self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(average_rating=average, total_reviews=count)
        )
