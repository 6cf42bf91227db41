# backend/routes/invoice.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.orm import Session

from database import get_db
from models.invoice import InvoiceStatus
from models.users import User, Role
from schemas.invoice import (
    InvoiceCreate, InvoiceStatusUpdate, InvoiceResponse, InvoiceListPage,
    InvoiceCancelResponse, InvoiceStats, OverdueResult,
)
from services import invoice_service
from utils.audit import write_log, client_ip
from utils.time_utils import parse_iso
from utils.tokenJWT import role_required

router = APIRouter(prefix="/invoices", tags=["Invoices"])

cashier = role_required(Role.CASHIER)
manager = role_required(Role.MANAGER)


# Issue an invoice, standalone or for an existing sale
@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    invoice = invoice_service.create_invoice(db, payload, current_user)
    write_log(db, user_id=current_user.id, action="INVOICE_CREATE", resource="invoices",
              ip=client_ip(request), meta={"id": invoice.id, "number": invoice.invoice_number})
    return invoice


# List invoices with filtering and pagination
@router.get("", response_model=InvoiceListPage)
def list_invoices(
    customer_id: Optional[int] = Query(None),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    start_date: Optional[str] = Query(None, description="ISO date or datetime"),
    end_date: Optional[str] = Query(None, description="ISO date or datetime"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    return invoice_service.list_invoices(
        db,
        customer_id=customer_id,
        status=invoice_status,
        start_date=parse_iso(start_date),
        end_date=parse_iso(end_date, end_of_day=True),
        page=page, page_size=page_size,
    )


@router.get("/stats", response_model=InvoiceStats)
def invoice_stats(db: Session = Depends(get_db), current_user: User = Depends(manager)):
    return invoice_service.invoice_stats(db)


# Flag unpaid invoices past their due date
@router.post("/mark-overdue", response_model=OverdueResult)
def mark_overdue(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    updated = invoice_service.mark_overdue(db)
    write_log(db, user_id=current_user.id, action="INVOICE_OVERDUE", resource="invoices",
              ip=client_ip(request), meta={"updated": updated})
    return {"updated": updated}


@router.get("/number/{invoice_number}", response_model=InvoiceResponse)
def get_by_number(invoice_number: str, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    return invoice_service.get_by_number(db, invoice_number)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    return invoice_service.get_invoice(db, invoice_id)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_status(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    invoice = invoice_service.update_status(db, invoice_id, payload)
    write_log(db, user_id=current_user.id, action="INVOICE_STATUS", resource="invoices",
              ip=client_ip(request), meta={"id": invoice.id, "status": invoice.status.value})
    return invoice


@router.patch("/{invoice_id}/cancel", response_model=InvoiceCancelResponse)
def cancel_invoice(
    invoice_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    result = invoice_service.cancel_invoice(db, invoice_id)
    write_log(db, user_id=current_user.id, action="INVOICE_CANCEL", resource="invoices",
              ip=client_ip(request), meta={"id": invoice_id})
    return result
