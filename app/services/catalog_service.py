import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from typing import Dict, Iterable, List, Optional
from app.errors import InsufficientStock
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.pricing_engine import D, ProductSnapshot

logger = logging.getLogger(__name__)


class CatalogService:
    """Product CRUD plus the stock operations checkout relies on"""

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        data = product_data.model_dump()
        data["price"] = D(data["price"])
        if data.get("compare_at_price") is not None:
            data["compare_at_price"] = D(data["compare_at_price"])
        db_product = Product(**data)
        db.add(db_product)
        db.commit()
        db.refresh(db_product)
        return db_product

    @staticmethod
    def get_product(db: Session, product_id: int) -> Optional[Product]:
        return (
            db.query(Product)
            .filter(Product.id == product_id, Product.is_deleted == False)
            .first()
        )

    @staticmethod
    def get_products(
        db: Session, status: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Product]:
        limit = min(max(limit, 1), 500)
        q = db.query(Product).filter(Product.is_deleted == False)
        if status:
            q = q.filter(Product.status == status)
        return q.order_by(Product.id).offset(skip).limit(limit).all()

    @staticmethod
    def update_product(db: Session, product_id: int, product_data: ProductUpdate) -> Optional[Product]:
        db_product = CatalogService.get_product(db, product_id)
        if not db_product:
            return None
        changes = product_data.model_dump(exclude_unset=True, exclude_none=True)
        for field in ("price", "compare_at_price"):
            if field in changes:
                changes[field] = D(changes[field])
        for field, value in changes.items():
            setattr(db_product, field, value)
        db.commit()
        db.refresh(db_product)
        return db_product

    @staticmethod
    def delete_product(db: Session, product_id: int) -> bool:
        db_product = CatalogService.get_product(db, product_id)
        if not db_product:
            return False
        db_product.is_deleted = True
        db_product.deleted_at = datetime.now(timezone.utc)
        db_product.status = "archived"
        db.commit()
        logger.info("Archived product %s", product_id)
        return True

    @staticmethod
    def load_snapshots(db: Session, product_ids: Iterable[int]) -> Dict[int, ProductSnapshot]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = db.query(Product).filter(Product.id.in_(ids)).all()
        return {
            p.id: ProductSnapshot(id=p.id, name=p.name, price=D(p.price), status=p.status, stock=p.stock)
            for p in rows
        }

    @staticmethod
    def reserve_stock(db: Session, product_id: int, quantity: int, name: str) -> None:
        """Take ``quantity`` units out of stock, only if that many remain.

        Runs inside the caller's transaction; no commit.
        """
        updated = (
            db.query(Product)
            .filter(Product.id == product_id, Product.stock >= quantity)
            .update({Product.stock: Product.stock - quantity}, synchronize_session=False)
        )
        if updated != 1:
            logger.warning("Stock for product %s ran out during checkout", product_id)
            raise InsufficientStock(product_id, name)

    @staticmethod
    def release_stock(db: Session, product_id: int, quantity: int) -> None:
        db.query(Product).filter(Product.id == product_id).update(
            {Product.stock: Product.stock + quantity}, synchronize_session=False
        )
