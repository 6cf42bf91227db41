# backend/routes/sales.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.orm import Session

from database import get_db
from models.sale import SaleStatus
from models.users import User, Role
from schemas.sale import SaleCreate, SaleUpdate, SaleOut, SalePage, SalesReport
from services import sales_service
from utils.audit import write_log, client_ip
from utils.time_utils import parse_iso
from utils.tokenJWT import role_required

router = APIRouter(prefix="/sales", tags=["Sales"])

cashier = role_required(Role.CASHIER)
manager = role_required(Role.MANAGER)
admin = role_required(Role.ADMIN)


# Ring up a sale; stock is taken in the same transaction
@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: SaleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    sale = sales_service.create_sale(db, payload, current_user)
    write_log(db, user_id=current_user.id, action="SALE_CREATE", resource="sales",
              ip=client_ip(request), meta={"id": sale.id, "final_amount": sale.final_amount})
    return sale


@router.get("", response_model=SalePage)
def list_sales(
    start_date: Optional[str] = Query(None, description="ISO date or datetime"),
    end_date: Optional[str] = Query(None, description="ISO date or datetime"),
    customer_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    sale_status: Optional[SaleStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    return sales_service.list_sales(
        db,
        start_date=parse_iso(start_date),
        end_date=parse_iso(end_date, end_of_day=True),
        customer_id=customer_id, user_id=user_id, status=sale_status,
        page=page, page_size=page_size,
    )


# Sales rung up by the calling user
@router.get("/my-sales", response_model=SalePage)
def my_sales(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    return sales_service.list_sales(db, user_id=current_user.id, page=page, page_size=page_size)


@router.get("/report", response_model=SalesReport)
def sales_report(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    return sales_service.sales_report(
        db, parse_iso(start_date), parse_iso(end_date, end_of_day=True)
    )


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: int, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    return sales_service.get_sale(db, sale_id)


# Payment method and notes only
@router.patch("/{sale_id}", response_model=SaleOut)
def update_sale(
    sale_id: int,
    payload: SaleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    sale = sales_service.update_sale(db, sale_id, payload)
    write_log(db, user_id=current_user.id, action="SALE_UPDATE", resource="sales",
              ip=client_ip(request), meta={"id": sale.id})
    return sale


@router.patch("/{sale_id}/cancel", response_model=SaleOut)
def cancel_sale(
    sale_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    sale = sales_service.cancel_sale(db, sale_id, current_user)
    write_log(db, user_id=current_user.id, action="SALE_CANCEL", resource="sales",
              ip=client_ip(request), meta={"id": sale.id})
    return sale


@router.delete("/{sale_id}")
def delete_sale(
    sale_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin),
):
    removed = sales_service.remove_sale(db, sale_id, current_user)
    write_log(db, user_id=current_user.id, action="SALE_DELETE", resource="sales",
              ip=client_ip(request), meta={"id": sale_id, "status": removed["status"].value})
    return {"message": f"Sale {sale_id} has been deleted", "sale": removed}
