from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from app.database import get_db
from app.routers.admin import audit
from app.schemas.product import ProductCreate, ProductUpdate, ProductResponse, ProductStatus
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(product: ProductCreate, request: Request, db: Session = Depends(get_db)):
    created = CatalogService.create_product(db, product)
    audit(request, db, "create_product", f"Created product: {created.name}",
          target_model="Product", target_id=created.id)
    return created


@router.get("", response_model=List[ProductResponse])
def list_products(
    status: Optional[ProductStatus] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)
):
    return CatalogService.get_products(db, status, skip, limit)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    p = CatalogService.get_product(db, product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")
    return p


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, payload: ProductUpdate, request: Request, db: Session = Depends(get_db)):
    updated = CatalogService.update_product(db, product_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Product not found")
    audit(request, db, "update_product", f"Updated product: {updated.name}",
          target_model="Product", target_id=product_id,
          details=payload.model_dump(mode="json", exclude_unset=True))
    return updated


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, request: Request, db: Session = Depends(get_db)):
    if not CatalogService.delete_product(db, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    audit(request, db, "delete_product", f"Deleted product {product_id}",
          target_model="Product", target_id=product_id)
    return
