# routes/reports.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.reports import (
    SalesReportResponse, ExpenseReportResponse, InventoryReport, LowStockPage,
)
from services import reporting_service
from utils.tokenJWT import role_required

router = APIRouter(prefix="/reports", tags=["Reports"])

manager = role_required(Role.MANAGER)

# -----------------------------
# 1) Sales
# -----------------------------
@router.get("/sales", response_model=SalesReportResponse)
def report_sales(
    start_date: Optional[str] = Query(None, description="ISO date, defaults to 30 days ago"),
    end_date: Optional[str] = Query(None, description="ISO date, defaults to today"),
    category_id: Optional[int] = Query(None, description="Only sales containing this category"),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    return reporting_service.sales_report(db, start_date, end_date, category_id)

# -----------------------------
# 2) Expenses
# -----------------------------
@router.get("/expenses", response_model=ExpenseReportResponse)
def report_expenses(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.ADMIN)),
):
    return reporting_service.expense_report(db, start_date, end_date)

# -----------------------------
# 3) Inventory
# -----------------------------
@router.get("/inventory", response_model=InventoryReport)
def report_inventory(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    return reporting_service.inventory_report(db, include_inactive=include_inactive)

# -----------------------------
# 4) Low stock
# -----------------------------
@router.get("/low-stock", response_model=LowStockPage)
def report_low_stock(
    threshold: Optional[int] = Query(None, ge=0, description="Fixed level instead of each product's min_quantity"),
    q: Optional[str] = Query(None, description="Search by name or SKU"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    return reporting_service.low_stock_report(db, threshold=threshold, q=q, page=page, page_size=page_size)
