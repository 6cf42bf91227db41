# services/invoice_service.py
"""Invoices: numbering, totals and the status machine.

Numbers look like ``INV-202412-0007``: a year-month prefix and a four digit
sequence that restarts every month. The next number is read from the
highest existing one, so two concurrent creations can pick the same value;
the unique index on ``invoice_number`` rejects the loser and the insert is
retried with a fresh number.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from database import atomic
from models.invoice import Invoice, InvoiceItem, InvoiceStatus
from models.sale import Sale, SaleStatus
from models.users import User
from schemas.invoice import InvoiceCreate, InvoiceStatusUpdate
from services import customer_service
from utils.concurrency import run_with_retry
from utils.errors import NotFoundError, BadRequestError, ConflictError
from utils.pagination import paginate
from utils.time_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

# Statuses that still expect a payment
OPEN_STATUSES = (InvoiceStatus.UNPAID, InvoiceStatus.PARTIALLY_PAID)


def number_prefix(now: datetime) -> str:
    return f"INV-{now.year}{now.month:02d}"


def generate_invoice_number(db: Session, now: Optional[datetime] = None) -> str:
    prefix = number_prefix(now or utcnow())
    # Length first so INV-202412-10000 sorts after INV-202412-9999
    last = (
        db.query(Invoice.invoice_number)
        .filter(Invoice.invoice_number.like(f"{prefix}-%"))
        .order_by(func.length(Invoice.invoice_number).desc(), Invoice.invoice_number.desc())
        .first()
    )

    sequence = 1
    if last:
        try:
            sequence = int(last[0].split("-")[2]) + 1
        except (IndexError, ValueError):
            logger.warning("Unparseable invoice number %s, restarting sequence", last[0])
    return f"{prefix}-{sequence:04d}"


def get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFoundError(f"Invoice with ID {invoice_id} not found")
    return invoice


def get_by_number(db: Session, invoice_number: str) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.invoice_number == invoice_number).first()
    if not invoice:
        raise NotFoundError(f"Invoice with number {invoice_number} not found")
    return invoice


def _lines_from_sale(sale: Sale) -> list:
    # Independent copy; later changes to the sale never touch the invoice
    return [
        {
            "product_id": item.product_id,
            "description": item.product.name if item.product else f"Product {item.product_id}",
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "discount": item.discount,
            "tax_amount": 0.0,
        }
        for item in sale.items
    ]


def _load_sale(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError(f"Sale with ID {sale_id} not found")
    if sale.status == SaleStatus.CANCELLED:
        raise BadRequestError("Cannot invoice a cancelled sale")
    existing = db.query(Invoice).filter(Invoice.sale_id == sale.id).first()
    if existing:
        raise BadRequestError(f"Sale {sale.id} already has invoice {existing.invoice_number}")
    return sale


def create_invoice(db: Session, payload: InvoiceCreate, user: User,
                   now: Optional[datetime] = None) -> Invoice:
    now = now or utcnow()
    customer_service.get_customer(db, payload.customer_id)

    discount = payload.discount
    tax_amount = payload.tax_amount
    lines = [item.model_dump() for item in payload.items]

    if payload.sale_id is not None:
        sale = _load_sale(db, payload.sale_id)
        if not lines:
            lines = _lines_from_sale(sale)
            # Without explicit amounts the invoice mirrors the sale totals
            if "discount" not in payload.model_fields_set:
                discount = sale.discount
            if "tax_amount" not in payload.model_fields_set:
                tax_amount = sale.tax_amount

    if not lines:
        raise BadRequestError("Invoice must have at least one item")

    subtotal = 0.0
    for line in lines:
        line_amount = line["quantity"] * line["unit_price"]
        if line["discount"] > line_amount:
            raise BadRequestError(f"Discount for item '{line['description']}' exceeds the line amount")
        line["total_price"] = round(line_amount - line["discount"] + line["tax_amount"], 2)
        subtotal += line_amount
        discount += line["discount"]
        tax_amount += line["tax_amount"]

    subtotal = round(subtotal, 2)
    discount = round(discount, 2)
    tax_amount = round(tax_amount, 2)
    total_amount = round(subtotal - discount + tax_amount, 2)
    if total_amount < 0:
        raise BadRequestError("Invoice total cannot be negative")

    def _insert() -> Invoice:
        # A concurrent request may have invoiced the sale since the first check
        if payload.sale_id is not None:
            _load_sale(db, payload.sale_id)
        invoice = Invoice(
            invoice_number=generate_invoice_number(db, now),
            customer_id=payload.customer_id,
            user_id=user.id,
            sale_id=payload.sale_id,
            subtotal=subtotal,
            discount=discount,
            tax_amount=tax_amount,
            total_amount=total_amount,
            status=InvoiceStatus.UNPAID,
            invoice_date=now,
            due_date=to_naive_utc(payload.due_date),
            notes=payload.notes,
            items=[InvoiceItem(**line) for line in lines],
        )
        with atomic(db):
            db.add(invoice)
        return invoice

    try:
        invoice = run_with_retry(
            db, _insert, attempts=settings.INVOICE_NUMBER_RETRIES, retry_on=(IntegrityError,)
        )
    except IntegrityError:
        logger.error("Invoice number allocation failed after %d attempts", settings.INVOICE_NUMBER_RETRIES)
        raise ConflictError("Could not allocate a unique invoice number, please retry")

    db.refresh(invoice)
    logger.info("Invoice %s issued for customer %s", invoice.invoice_number, invoice.customer_id)
    return invoice


def update_status(db: Session, invoice_id: int, payload: InvoiceStatusUpdate) -> Invoice:
    invoice = get_invoice(db, invoice_id)

    if invoice.status == InvoiceStatus.CANCELLED:
        raise BadRequestError("Cannot update status of a cancelled invoice")
    if invoice.status == InvoiceStatus.PAID and payload.status == InvoiceStatus.CANCELLED:
        raise BadRequestError("Cannot cancel a paid invoice")

    with atomic(db):
        invoice.status = payload.status
        # paid_date is payment history; later status changes leave it in place
        if payload.status == InvoiceStatus.PAID:
            invoice.paid_date = to_naive_utc(payload.paid_date) or utcnow()
    db.refresh(invoice)
    return invoice


def cancel_invoice(db: Session, invoice_id: int) -> dict:
    invoice = get_invoice(db, invoice_id)
    if invoice.status == InvoiceStatus.PAID:
        raise BadRequestError("Cannot cancel a paid invoice")

    with atomic(db):
        invoice.status = InvoiceStatus.CANCELLED
    db.refresh(invoice)
    logger.info("Invoice %s cancelled", invoice.invoice_number)
    return {"message": "Invoice cancelled successfully", "invoice": invoice}


def mark_overdue(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    with atomic(db):
        updated = (
            db.query(Invoice)
            .filter(Invoice.status.in_(OPEN_STATUSES), Invoice.due_date < now)
            .update({Invoice.status: InvoiceStatus.OVERDUE}, synchronize_session=False)
        )
    db.expire_all()
    if updated:
        logger.info("Marked %d invoices as overdue", updated)
    return updated


def list_invoices(db: Session, *, customer_id: Optional[int] = None,
                  status: Optional[InvoiceStatus] = None,
                  start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                  page: int = 1, page_size: int = 20) -> dict:
    if start_date and end_date and start_date > end_date:
        raise BadRequestError("Start date must be before end date")
    query = db.query(Invoice)
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    if status is not None:
        query = query.filter(Invoice.status == status)
    if start_date:
        query = query.filter(Invoice.invoice_date >= start_date)
    if end_date:
        query = query.filter(Invoice.invoice_date <= end_date)
    query = query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
    return paginate(query, page, page_size)


def invoice_stats(db: Session) -> dict:
    counts = dict(
        db.query(Invoice.status, func.count(Invoice.id)).group_by(Invoice.status).all()
    )

    # Cancelled invoices are left out of every amount
    total_amount = (
        db.query(func.coalesce(func.sum(Invoice.total_amount), 0.0))
        .filter(Invoice.status != InvoiceStatus.CANCELLED)
        .scalar()
    )
    paid_amount = (
        db.query(func.coalesce(func.sum(Invoice.total_amount), 0.0))
        .filter(Invoice.status == InvoiceStatus.PAID)
        .scalar()
    )

    return {
        "total_invoices": sum(counts.values()),
        "unpaid_invoices": counts.get(InvoiceStatus.UNPAID, 0),
        "partially_paid_invoices": counts.get(InvoiceStatus.PARTIALLY_PAID, 0),
        "paid_invoices": counts.get(InvoiceStatus.PAID, 0),
        "overdue_invoices": counts.get(InvoiceStatus.OVERDUE, 0),
        "cancelled_invoices": counts.get(InvoiceStatus.CANCELLED, 0),
        "total_amount": round(float(total_amount), 2),
        "paid_amount": round(float(paid_amount), 2),
        "unpaid_amount": round(float(total_amount) - float(paid_amount), 2),
    }
