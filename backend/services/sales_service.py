# services/sales_service.py
"""Sale lifecycle: create, cancel, remove.

Every operation that touches stock runs inside one ``atomic`` block, so a
sale, its items and the matching stock changes are stored together or not
at all. Stock itself only moves through ``inventory_service.adjust_stock``.

Totals use a flat document discount:
``final_amount = total_amount - discount + tax_amount``.
"""
import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import atomic
from models.invoice import Invoice
from models.product import Product
from models.sale import Sale, SaleItem, SaleStatus
from models.stock import MovementType
from models.users import User
from schemas.sale import SaleCreate, SaleUpdate
from services import customer_service, inventory_service
from utils.concurrency import lock_for_update
from utils.errors import NotFoundError, BadRequestError
from utils.pagination import paginate

logger = logging.getLogger(__name__)


def _money(value: float) -> float:
    return round(value, 2)


def _check_range(start_date: Optional[datetime], end_date: Optional[datetime]):
    if start_date and end_date and start_date > end_date:
        raise BadRequestError("Start date must be before end date")


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError(f"Sale with ID {sale_id} not found")
    return sale


def _locked_sale(db: Session, sale_id: int) -> Sale:
    sale = lock_for_update(db.query(Sale).filter(Sale.id == sale_id)).first()
    if not sale:
        raise NotFoundError(f"Sale with ID {sale_id} not found")
    return sale


def _restore_stock(db: Session, sale: Sale, user_id: Optional[int]):
    # Uses the quantities recorded on the sale, never the current product state
    for item in sale.items:
        inventory_service.adjust_stock(
            db, item.product_id, item.quantity,
            movement_type=MovementType.SALE_RESTORE, user_id=user_id,
            reference=f"sale:{sale.id}",
        )


def create_sale(db: Session, payload: SaleCreate, user: User) -> Sale:
    if not payload.items:
        raise BadRequestError("Sale must have at least one item")

    with atomic(db):
        if payload.customer_id is not None:
            customer_service.get_customer(db, payload.customer_id)

        # Repeated lines for one product are checked against stock together
        requested = Counter()
        for item in payload.items:
            requested[item.product_id] += item.quantity

        products = {}
        for product_id, quantity in requested.items():
            product = lock_for_update(db.query(Product).filter(Product.id == product_id)).first()
            if not product:
                raise NotFoundError(f"Product with ID {product_id} not found")
            if not product.is_active:
                raise BadRequestError(f"Product {product.name} is not active")
            if product.quantity < quantity:
                raise BadRequestError(f"Insufficient stock for product {product.name}")
            products[product_id] = product

        lines = []
        for item in payload.items:
            product = products[item.product_id]
            line_amount = _money(product.price * item.quantity)
            if item.discount > line_amount:
                raise BadRequestError(f"Discount for product {product.name} exceeds the line amount")
            lines.append(SaleItem(
                product_id=product.id,
                quantity=item.quantity,
                unit_price=product.price,
                discount=item.discount,
                total_price=_money(line_amount - item.discount),
            ))

        total_amount = _money(sum(line.total_price for line in lines))
        if payload.discount > total_amount:
            raise BadRequestError("Discount cannot exceed the sale total")

        sale = Sale(
            customer_id=payload.customer_id,
            user_id=user.id,
            total_amount=total_amount,
            discount=payload.discount,
            tax_amount=payload.tax_amount,
            final_amount=_money(total_amount - payload.discount + payload.tax_amount),
            payment_method=payload.payment_method,
            status=SaleStatus.COMPLETED,
            notes=payload.notes,
            items=lines,
        )
        db.add(sale)
        db.flush()

        for product_id, quantity in requested.items():
            inventory_service.adjust_stock(
                db, product_id, -quantity,
                movement_type=MovementType.SALE, user_id=user.id,
                reference=f"sale:{sale.id}",
            )

    db.refresh(sale)
    logger.info("Sale %s created by user %s, final amount %.2f", sale.id, user.id, sale.final_amount)
    return sale


def cancel_sale(db: Session, sale_id: int, user: Optional[User] = None) -> Sale:
    with atomic(db):
        sale = _locked_sale(db, sale_id)
        if sale.status == SaleStatus.CANCELLED:
            raise BadRequestError("Sale is already cancelled")
        _restore_stock(db, sale, user.id if user else None)
        sale.status = SaleStatus.CANCELLED

    db.refresh(sale)
    logger.info("Sale %s cancelled", sale.id)
    return sale


def remove_sale(db: Session, sale_id: int, user: Optional[User] = None) -> dict:
    """Delete a sale and its items, giving stock back when it was completed.

    Returns a snapshot of the sale as it was before deletion.
    """
    with atomic(db):
        sale = _locked_sale(db, sale_id)
        snapshot = {
            "id": sale.id,
            "status": sale.status,
            "final_amount": sale.final_amount,
            "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in sale.items],
        }
        if sale.status == SaleStatus.COMPLETED:
            _restore_stock(db, sale, user.id if user else None)

        # The invoice stays, it just loses its link to the sale
        db.query(Invoice).filter(Invoice.sale_id == sale.id).update(
            {Invoice.sale_id: None}, synchronize_session=False
        )
        db.delete(sale)

    logger.info("Sale %s removed", snapshot["id"])
    return snapshot


def update_sale(db: Session, sale_id: int, payload: SaleUpdate) -> Sale:
    sale = get_sale(db, sale_id)
    if sale.status == SaleStatus.CANCELLED:
        raise BadRequestError("Cannot update a cancelled sale")
    with atomic(db):
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(sale, field, value)
    db.refresh(sale)
    return sale


def list_sales(db: Session, *, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
               customer_id: Optional[int] = None, user_id: Optional[int] = None,
               status: Optional[SaleStatus] = None, page: int = 1, page_size: int = 20) -> dict:
    _check_range(start_date, end_date)
    query = db.query(Sale)
    if start_date:
        query = query.filter(Sale.created_at >= start_date)
    if end_date:
        query = query.filter(Sale.created_at <= end_date)
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    if status is not None:
        query = query.filter(Sale.status == status)
    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    return paginate(query, page, page_size)


def sales_report(db: Session, start_date: Optional[datetime] = None,
                 end_date: Optional[datetime] = None) -> dict:
    _check_range(start_date, end_date)

    filters = [Sale.status == SaleStatus.COMPLETED]
    if start_date:
        filters.append(Sale.created_at >= start_date)
    if end_date:
        filters.append(Sale.created_at <= end_date)

    totals = db.query(
        func.count(Sale.id).label("count"),
        func.coalesce(func.sum(Sale.final_amount), 0.0).label("revenue"),
        func.coalesce(func.sum(Sale.discount), 0.0).label("discount"),
        func.coalesce(func.sum(Sale.tax_amount), 0.0).label("tax"),
    ).filter(*filters).one()

    by_method = (
        db.query(Sale.payment_method, func.count(Sale.id))
        .filter(*filters)
        .group_by(Sale.payment_method)
        .all()
    )

    count = totals.count or 0
    revenue = float(totals.revenue)
    return {
        "total_sales": count,
        "total_revenue": _money(revenue),
        "total_discount": _money(float(totals.discount)),
        "total_tax": _money(float(totals.tax)),
        "average_sale_value": _money(revenue / count) if count else 0.0,
        "payment_method_stats": {method.value: n for method, n in by_method},
        "start_date": start_date,
        "end_date": end_date,
    }
