# services/reporting_service.py
"""Read-only aggregates for the /reports endpoints.

Date arguments arrive as ISO strings straight from the query string. A
missing range means the last 30 days, and a bare end date covers the whole
day. Only COMPLETED sales are counted.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, distinct
from sqlalchemy.orm import Session

from models.catalog import Category, Supplier
from models.expense import Expense
from models.product import Product
from models.sale import Sale, SaleItem, SaleStatus
from utils.errors import BadRequestError
from utils.pagination import paginate
from utils.time_utils import parse_iso, utcnow, days_ago

DEFAULT_RANGE_DAYS = 30
TOP_PRODUCTS_LIMIT = 10


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def resolve_range(start_date: Optional[str], end_date: Optional[str],
                  now: Optional[datetime] = None) -> tuple:
    now = now or utcnow()
    start = parse_iso(start_date) or days_ago(DEFAULT_RANGE_DAYS, now)
    end = parse_iso(end_date, end_of_day=True) or now
    if start > end:
        raise BadRequestError("Start date must be before end date")
    return start, end


def _sale_filters(start: datetime, end: datetime, category_id: Optional[int]) -> list:
    filters = [
        Sale.status == SaleStatus.COMPLETED,
        Sale.created_at >= start,
        Sale.created_at <= end,
    ]
    # A sale matches when at least one of its lines is in the category
    if category_id is not None:
        filters.append(Sale.items.any(SaleItem.product.has(Product.category_id == category_id)))
    return filters


def _daily_sales(db: Session, filters: list) -> list:
    day = func.date(Sale.created_at)
    rows = (
        db.query(
            day.label("date"),
            func.count(Sale.id).label("total_sales"),
            func.coalesce(func.sum(Sale.final_amount), 0.0).label("total_revenue"),
            func.coalesce(func.sum(Sale.discount), 0.0).label("total_discount"),
            func.coalesce(func.sum(Sale.tax_amount), 0.0).label("total_tax"),
            func.coalesce(func.avg(Sale.final_amount), 0.0).label("average_sale_value"),
        )
        .filter(*filters)
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [
        {
            "date": str(r.date),
            "total_sales": r.total_sales,
            "total_revenue": round(float(r.total_revenue), 2),
            "total_discount": round(float(r.total_discount), 2),
            "total_tax": round(float(r.total_tax), 2),
            "average_sale_value": round(float(r.average_sale_value), 2),
        }
        for r in rows
    ]


def _top_products(db: Session, filters: list, category_id: Optional[int]) -> list:
    query = (
        db.query(
            Product.id.label("id"),
            Product.name.label("name"),
            Product.sku.label("sku"),
            Category.name.label("category_name"),
            func.sum(SaleItem.quantity).label("total_quantity_sold"),
            func.sum(SaleItem.total_price).label("total_revenue"),
            func.avg(SaleItem.unit_price).label("average_price"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .filter(*filters)
    )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    rows = (
        query.group_by(Product.id, Product.name, Product.sku, Category.name)
        .order_by(func.sum(SaleItem.quantity).desc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )
    return [
        {
            "id": r.id,
            "name": r.name,
            "sku": r.sku,
            "category_name": r.category_name,
            "total_quantity_sold": int(r.total_quantity_sold or 0),
            "total_revenue": round(float(r.total_revenue or 0), 2),
            "average_price": round(float(r.average_price or 0), 2),
        }
        for r in rows
    ]


def _category_breakdown(db: Session, filters: list, category_id: Optional[int]) -> list:
    query = (
        db.query(
            Category.id.label("id"),
            Category.name.label("name"),
            func.count(distinct(Sale.id)).label("total_sales"),
            func.sum(SaleItem.quantity).label("total_quantity"),
            func.sum(SaleItem.total_price).label("total_revenue"),
        )
        .join(Product, Product.category_id == Category.id)
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(*filters)
    )
    if category_id is not None:
        query = query.filter(Category.id == category_id)
    rows = (
        query.group_by(Category.id, Category.name)
        .order_by(func.sum(SaleItem.total_price).desc())
        .all()
    )
    grand_total = sum(float(r.total_revenue or 0) for r in rows)
    return [
        {
            "id": r.id,
            "name": r.name,
            "total_sales": r.total_sales,
            "total_quantity": int(r.total_quantity or 0),
            "total_revenue": round(float(r.total_revenue or 0), 2),
            "percentage": _pct(float(r.total_revenue or 0), grand_total),
        }
        for r in rows
    ]


def _payment_methods(db: Session, filters: list) -> list:
    rows = (
        db.query(
            Sale.payment_method,
            func.count(Sale.id).label("count"),
            func.coalesce(func.sum(Sale.final_amount), 0.0).label("total_amount"),
        )
        .filter(*filters)
        .group_by(Sale.payment_method)
        .order_by(func.count(Sale.id).desc())
        .all()
    )
    total_count = sum(r.count for r in rows)
    return [
        {
            "method": r.payment_method.value,
            "count": r.count,
            "total_amount": round(float(r.total_amount), 2),
            "percentage": _pct(r.count, total_count),
        }
        for r in rows
    ]


def sales_report(db: Session, start_date: Optional[str] = None, end_date: Optional[str] = None,
                 category_id: Optional[int] = None, now: Optional[datetime] = None) -> dict:
    start, end = resolve_range(start_date, end_date, now)
    if category_id is not None and not db.query(Category).filter(Category.id == category_id).first():
        raise BadRequestError(f"Category with ID {category_id} not found")

    filters = _sale_filters(start, end, category_id)

    totals = db.query(
        func.count(Sale.id).label("count"),
        func.coalesce(func.sum(Sale.final_amount), 0.0).label("revenue"),
        func.coalesce(func.sum(Sale.discount), 0.0).label("discount"),
        func.coalesce(func.sum(Sale.tax_amount), 0.0).label("tax"),
        func.coalesce(func.avg(Sale.final_amount), 0.0).label("average"),
    ).filter(*filters).one()

    total_items = (
        db.query(func.coalesce(func.sum(SaleItem.quantity), 0))
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(*filters)
        .scalar()
    )

    return {
        "summary": {
            "total_sales": totals.count or 0,
            "total_revenue": round(float(totals.revenue), 2),
            "total_discount": round(float(totals.discount), 2),
            "total_tax": round(float(totals.tax), 2),
            "average_sale_value": round(float(totals.average), 2),
            "total_items": int(total_items or 0),
        },
        "daily_summary": _daily_sales(db, filters),
        "top_selling_products": _top_products(db, filters, category_id),
        "category_breakdown": _category_breakdown(db, filters, category_id),
        "payment_method_stats": _payment_methods(db, filters),
        "date_range": {
            "start_date": start.date().isoformat(),
            "end_date": end.date().isoformat(),
        },
    }


def expense_report(db: Session, start_date: Optional[str] = None, end_date: Optional[str] = None,
                   now: Optional[datetime] = None) -> dict:
    start, end = resolve_range(start_date, end_date, now)
    filters = [Expense.date >= start, Expense.date <= end]

    totals = db.query(
        func.count(Expense.id).label("count"),
        func.coalesce(func.sum(Expense.amount), 0.0).label("amount"),
        func.coalesce(func.avg(Expense.amount), 0.0).label("average"),
    ).filter(*filters).one()

    day = func.date(Expense.date)
    daily = (
        db.query(
            day.label("date"),
            func.count(Expense.id).label("count"),
            func.sum(Expense.amount).label("amount"),
        )
        .filter(*filters)
        .group_by(day)
        .order_by(day)
        .all()
    )

    by_category = (
        db.query(
            Expense.category,
            func.count(Expense.id).label("count"),
            func.sum(Expense.amount).label("amount"),
        )
        .filter(*filters)
        .group_by(Expense.category)
        .order_by(func.sum(Expense.amount).desc())
        .all()
    )

    total_amount = float(totals.amount)
    return {
        "summary": {
            "total_expenses": totals.count or 0,
            "total_amount": round(total_amount, 2),
            "average_expense": round(float(totals.average), 2),
        },
        "daily_summary": [
            {"date": str(r.date), "total_expenses": r.count, "total_amount": round(float(r.amount), 2)}
            for r in daily
        ],
        "category_breakdown": [
            {
                "category": r.category,
                "count": r.count,
                "total_amount": round(float(r.amount), 2),
                "percentage": _pct(float(r.amount), total_amount),
            }
            for r in by_category
        ],
        "date_range": {
            "start_date": start.date().isoformat(),
            "end_date": end.date().isoformat(),
        },
    }


def inventory_report(db: Session, include_inactive: bool = False) -> dict:
    query = (
        db.query(Product, Category.name, Supplier.name)
        .outerjoin(Category, Category.id == Product.category_id)
        .outerjoin(Supplier, Supplier.id == Product.supplier_id)
    )
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))

    items = []
    for product, category_name, supplier_name in query.order_by(Product.name.asc()).all():
        items.append({
            "product_id": product.id,
            "name": product.name,
            "sku": product.sku,
            "category_name": category_name,
            "supplier_name": supplier_name,
            "quantity": product.quantity,
            "min_quantity": product.min_quantity,
            "price": product.price,
            "cost_price": product.cost_price,
            "stock_value": round(product.quantity * product.cost_price, 2),
            "is_low_stock": product.is_low_stock,
        })

    return {
        "items": items,
        "total_products": len(items),
        "total_units": sum(i["quantity"] for i in items),
        "total_stock_value": round(sum(i["stock_value"] for i in items), 2),
        "low_stock_count": sum(1 for i in items if i["is_low_stock"]),
    }


def low_stock_report(db: Session, *, threshold: Optional[int] = None, q: Optional[str] = None,
                     page: int = 1, page_size: int = 20) -> dict:
    """Active products at or below their reorder point.

    ``threshold`` replaces each product's own min_quantity with one fixed level.
    """
    query = db.query(Product).filter(Product.is_active.is_(True))
    if threshold is not None:
        query = query.filter(Product.quantity <= threshold)
    else:
        query = query.filter(Product.quantity <= Product.min_quantity)
    if q:
        like = f"%{q}%"
        query = query.filter(Product.name.ilike(like) | Product.sku.ilike(like))
    query = query.order_by(Product.quantity.asc(), Product.name.asc())

    page_data = paginate(query, page, page_size)
    page_data["items"] = [
        {
            "product_id": p.id,
            "name": p.name,
            "sku": p.sku,
            "quantity": p.quantity,
            "min_quantity": p.min_quantity,
        }
        for p in page_data["items"]
    ]
    return page_data
