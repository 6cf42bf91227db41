# services/product_service.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from database import atomic
from models.catalog import Category, Supplier
from models.product import Product
from models.sale import SaleItem
from models.purchase import PurchaseItem
from models.invoice import InvoiceItem
from models.stock import StockMovement, MovementType
from schemas.product import ProductCreate, ProductUpdate
from services import inventory_service
from utils.errors import NotFoundError, BadRequestError, ConflictError
from utils.pagination import paginate

logger = logging.getLogger(__name__)


def _check_references(db: Session, category_id: Optional[int], supplier_id: Optional[int]):
    if category_id is not None and not db.query(Category).filter(Category.id == category_id).first():
        raise BadRequestError(f"Category with ID {category_id} not found")
    if supplier_id is not None and not db.query(Supplier).filter(Supplier.id == supplier_id).first():
        raise BadRequestError(f"Supplier with ID {supplier_id} not found")


def _taken(db: Session, column, value, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Product).filter(column == value)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def find_by_sku(db: Session, sku: str) -> Product:
    product = db.query(Product).filter(Product.sku == sku).first()
    if not product:
        raise NotFoundError(f"Product with SKU {sku} not found")
    return product


# Scanner lookup, only sellable products
def find_by_barcode(db: Session, barcode: str) -> Product:
    product = (
        db.query(Product)
        .filter(Product.barcode == barcode, Product.is_active.is_(True))
        .first()
    )
    if not product:
        raise NotFoundError(f"Product with barcode {barcode} not found")
    return product


def list_products(db: Session, *, q: Optional[str] = None, category_id: Optional[int] = None,
                  supplier_id: Optional[int] = None, include_inactive: bool = False,
                  page: int = 1, page_size: int = 20) -> dict:
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    # Search by name, SKU or barcode
    if q:
        like = f"%{q}%"
        query = query.filter(
            Product.name.ilike(like) | Product.sku.ilike(like) | Product.barcode.ilike(like)
        )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)
    return paginate(query.order_by(Product.name.asc()), page, page_size)


def low_stock(db: Session):
    return (
        db.query(Product)
        .filter(Product.is_active.is_(True), Product.quantity <= Product.min_quantity)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )


def create_product(db: Session, payload: ProductCreate) -> Product:
    _check_references(db, payload.category_id, payload.supplier_id)
    if _taken(db, Product.sku, payload.sku):
        raise ConflictError(f"Product with SKU {payload.sku} already exists")
    if payload.barcode and _taken(db, Product.barcode, payload.barcode):
        raise ConflictError(f"Product with barcode {payload.barcode} already exists")

    product = Product(**payload.model_dump())
    with atomic(db):
        db.add(product)
    db.refresh(product)
    logger.info("Created product %s (%s)", product.name, product.sku)
    return product


def update_product(db: Session, product_id: int, payload: ProductUpdate) -> Product:
    product = get_product(db, product_id)
    data = payload.model_dump(exclude_unset=True)

    if "category_id" in data and data["category_id"] is None:
        raise BadRequestError("Product must belong to a category")
    _check_references(db, data.get("category_id"), data.get("supplier_id"))
    if data.get("sku") and _taken(db, Product.sku, data["sku"], exclude_id=product.id):
        raise BadRequestError(f"Product with SKU {data['sku']} already exists")
    if data.get("barcode") and _taken(db, Product.barcode, data["barcode"], exclude_id=product.id):
        raise BadRequestError(f"Product with barcode {data['barcode']} already exists")

    with atomic(db):
        for field, value in data.items():
            setattr(product, field, value)
    db.refresh(product)
    return product


def adjust_stock(db: Session, product_id: int, quantity: int, *, user_id: Optional[int] = None,
                 reason: Optional[str] = None) -> Product:
    with atomic(db):
        product = inventory_service.adjust_stock(
            db, product_id, quantity,
            movement_type=MovementType.ADJUSTMENT, user_id=user_id,
            reference="manual", reason=reason,
        )
    db.refresh(product)
    return product


def toggle_active(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    with atomic(db):
        product.is_active = not product.is_active
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    # Line items keep history; a referenced product can only be deactivated
    for model, label in ((SaleItem, "sales"), (PurchaseItem, "purchases"), (InvoiceItem, "invoices")):
        if db.query(model).filter(model.product_id == product.id).count():
            raise BadRequestError(
                f"Cannot delete product referenced by {label}. Deactivate it instead."
            )
    with atomic(db):
        db.query(StockMovement).filter(StockMovement.product_id == product.id).delete(
            synchronize_session=False
        )
        db.delete(product)
    logger.info("Deleted product %s", product.sku)
    return product
