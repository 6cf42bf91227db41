# services/dashboard_service.py
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from models.catalog import Customer
from models.product import Product
from models.sale import Sale, SaleItem, SaleStatus
from utils.time_utils import utcnow, start_of_day

TOP_PRODUCTS_LIMIT = 5


# Today's figures, best sellers and stock alerts for the front page
def get_summary(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)
    completed_today = [Sale.status == SaleStatus.COMPLETED, Sale.created_at >= today]

    totals = db.query(
        func.count(Sale.id).label("count"),
        func.coalesce(func.sum(Sale.final_amount), 0.0).label("revenue"),
        func.coalesce(func.sum(Sale.discount), 0.0).label("discount"),
        func.coalesce(func.sum(Sale.tax_amount), 0.0).label("tax"),
        func.coalesce(func.avg(Sale.final_amount), 0.0).label("average"),
    ).filter(*completed_today).one()

    items_sold = (
        db.query(func.coalesce(func.sum(SaleItem.quantity), 0))
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(*completed_today)
        .scalar()
    )

    top_products = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            func.sum(SaleItem.quantity).label("total_quantity_sold"),
            func.sum(SaleItem.total_price).label("total_revenue"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.status == SaleStatus.COMPLETED)
        .group_by(Product.id, Product.name)
        .order_by(func.sum(SaleItem.quantity).desc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )

    low_stock = (
        db.query(Product)
        .filter(Product.is_active.is_(True), Product.quantity <= Product.min_quantity)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )

    customers_today = db.query(Customer).filter(Customer.created_at >= today).count()

    return {
        "today_sales": {
            "total_sales": totals.count or 0,
            "total_revenue": round(float(totals.revenue), 2),
            "total_discount": round(float(totals.discount), 2),
            "total_tax": round(float(totals.tax), 2),
            "average_sale_value": round(float(totals.average), 2),
            "items_sold": int(items_sold or 0),
        },
        "top_selling_products": [
            {
                "product_id": r.product_id,
                "product_name": r.product_name,
                "total_quantity_sold": int(r.total_quantity_sold or 0),
                "total_revenue": round(float(r.total_revenue or 0), 2),
            }
            for r in top_products
        ],
        "low_stock_products": [
            {
                "product_id": p.id,
                "name": p.name,
                "sku": p.sku,
                "quantity": p.quantity,
                "min_quantity": p.min_quantity,
            }
            for p in low_stock
        ],
        "customers_added_today": customers_today,
        "last_updated": now,
    }


def get_stats(db: Session) -> dict:
    completed = Sale.status == SaleStatus.COMPLETED
    total_revenue = (
        db.query(func.coalesce(func.sum(Sale.final_amount), 0.0)).filter(completed).scalar()
    )
    return {
        "total_sales": db.query(Sale).filter(completed).count(),
        "total_products": db.query(Product).count(),
        "total_customers": db.query(Customer).count(),
        "total_revenue": round(float(total_revenue), 2),
        "low_stock_products": db.query(Product).filter(
            Product.quantity <= settings.LOW_STOCK_THRESHOLD
        ).count(),
    }
