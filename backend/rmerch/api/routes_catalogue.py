from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rmerch.api.responses import ok, pagination
from rmerch.db import get_db
from rmerch.schemas.base import dump
from rmerch.schemas.product_schema import ProductCreate, ProductOut, ProductUpdate
from rmerch.services.catalogue_service import CatalogueService

router = APIRouter(prefix="/products", tags=["catalogue"])


def _product(p) -> dict:
    return dump(ProductOut.model_validate(p))


@router.get("", summary="List products")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    db: Session = Depends(get_db),
):
    items, total = CatalogueService(db).list_products(page=page, size=limit)
    return ok([_product(p) for p in items], pagination=pagination(total, page, limit))


@router.post("", summary="Create product")
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    p = CatalogueService(db).create_product(payload.model_dump())
    return ok(_product(p), message="Product created", status_code=201)


@router.get("/user/{user_id}", summary="Products listed by a seller")
def products_by_owner(user_id: str, db: Session = Depends(get_db)):
    items = CatalogueService(db).list_by_owner(user_id)
    return ok([_product(p) for p in items], count=len(items))


@router.get("/{product_id}", summary="Get product")
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ok(_product(CatalogueService(db).get_product(product_id)))


@router.put("/{product_id}", summary="Update product")
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True)
    changes.update(payload.model_extra or {})
    p = CatalogueService(db).update_product(product_id, changes)
    return ok(_product(p), message="Product updated")


@router.delete("/{product_id}", summary="Delete product")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    p = CatalogueService(db).delete_product(product_id)
    return ok(_product(p), message="Product deleted")
