# services/inventory_service.py
"""Single entry point for every stock change.

Quantities are changed with a conditional UPDATE
(``quantity = quantity + delta WHERE quantity >= -delta``) so two requests
racing for the last units cannot both succeed. Callers own the transaction:
nothing here commits, wrap the call in ``database.atomic``.
"""
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.product import Product
from models.stock import StockMovement, MovementType
from utils.errors import NotFoundError, BadRequestError
from utils.pagination import paginate

logger = logging.getLogger(__name__)


def adjust_stock(db: Session, product_id: int, delta: int, *, movement_type: MovementType,
                 user_id: Optional[int] = None, reference: Optional[str] = None,
                 reason: Optional[str] = None) -> Product:
    if delta == 0:
        raise BadRequestError("Quantity change must not be zero")

    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found")

    stmt = update(Product).where(Product.id == product_id)
    if delta < 0:
        stmt = stmt.where(Product.quantity >= -delta)
    stmt = stmt.values(quantity=Product.quantity + delta).execution_options(synchronize_session=False)

    result = db.execute(stmt)
    if result.rowcount != 1:
        logger.warning("Stock change of %d rejected for product %s", delta, product_id)
        raise BadRequestError(f"Insufficient stock for product {product.name}")

    db.add(StockMovement(
        product_id=product_id,
        user_id=user_id,
        quantity_change=delta,
        type=movement_type,
        reference=reference,
        reason=reason,
    ))
    db.flush()
    db.refresh(product)
    return product


def list_movements(db: Session, *, product_id: Optional[int] = None,
                   movement_type: Optional[MovementType] = None,
                   page: int = 1, page_size: int = 20) -> dict:
    query = db.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if movement_type is not None:
        query = query.filter(StockMovement.type == movement_type)
    query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    return paginate(query, page, page_size)
