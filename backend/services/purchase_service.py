# services/purchase_service.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from database import atomic
from models.product import Product
from models.purchase import Purchase, PurchaseItem
from models.stock import MovementType
from models.users import User
from schemas.purchase import PurchaseCreate
from services import inventory_service, supplier_service
from utils.errors import NotFoundError, BadRequestError
from utils.pagination import paginate

logger = logging.getLogger(__name__)


def get_purchase(db: Session, purchase_id: int) -> Purchase:
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
    if not purchase:
        raise NotFoundError(f"Purchase with ID {purchase_id} not found")
    return purchase


def list_purchases(db: Session, *, supplier_id: Optional[int] = None,
                   page: int = 1, page_size: int = 20) -> dict:
    query = db.query(Purchase)
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    query = query.order_by(Purchase.created_at.desc(), Purchase.id.desc())
    return paginate(query, page, page_size)


# Record received goods and put them on stock in one transaction
def create_purchase(db: Session, payload: PurchaseCreate, user: User) -> Purchase:
    if not payload.items:
        raise BadRequestError("Purchase must have at least one item")

    with atomic(db):
        supplier_service.get_supplier(db, payload.supplier_id)

        lines = []
        for item in payload.items:
            product = db.query(Product).filter(Product.id == item.product_id).first()
            if not product:
                raise NotFoundError(f"Product with ID {item.product_id} not found")
            unit_cost = item.unit_cost if item.unit_cost is not None else product.cost_price
            lines.append(PurchaseItem(
                product_id=product.id,
                quantity=item.quantity,
                unit_cost=unit_cost,
                total_cost=round(unit_cost * item.quantity, 2),
            ))

        purchase = Purchase(
            supplier_id=payload.supplier_id,
            user_id=user.id,
            total_amount=round(sum(line.total_cost for line in lines), 2),
            notes=payload.notes,
            items=lines,
        )
        db.add(purchase)
        db.flush()

        for line in lines:
            inventory_service.adjust_stock(
                db, line.product_id, line.quantity,
                movement_type=MovementType.PURCHASE, user_id=user.id,
                reference=f"purchase:{purchase.id}",
            )

    db.refresh(purchase)
    logger.info("Purchase %s received from supplier %s", purchase.id, purchase.supplier_id)
    return purchase
