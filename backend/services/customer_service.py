# services/customer_service.py
from typing import Optional

from sqlalchemy.orm import Session

from database import atomic
from models.catalog import Customer
from models.sale import Sale
from models.invoice import Invoice
from schemas.catalog import CustomerCreate, CustomerUpdate
from utils.errors import NotFoundError, BadRequestError
from utils.pagination import paginate


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError(f"Customer with ID {customer_id} not found")
    return customer


def list_customers(db: Session, *, q: Optional[str] = None, include_inactive: bool = False,
                   page: int = 1, page_size: int = 20) -> dict:
    query = db.query(Customer)
    if not include_inactive:
        query = query.filter(Customer.is_active.is_(True))
    # Search by name, email or phone
    if q:
        like = f"%{q}%"
        query = query.filter(
            Customer.first_name.ilike(like)
            | Customer.last_name.ilike(like)
            | Customer.email.ilike(like)
            | Customer.phone.ilike(like)
        )
    query = query.order_by(Customer.last_name.asc(), Customer.first_name.asc())
    return paginate(query, page, page_size)


def create_customer(db: Session, payload: CustomerCreate) -> Customer:
    customer = Customer(**payload.model_dump())
    with atomic(db):
        db.add(customer)
    db.refresh(customer)
    return customer


def update_customer(db: Session, customer_id: int, payload: CustomerUpdate) -> Customer:
    customer = get_customer(db, customer_id)
    with atomic(db):
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(customer, field, value)
    db.refresh(customer)
    return customer


def toggle_active(db: Session, customer_id: int) -> Customer:
    customer = get_customer(db, customer_id)
    with atomic(db):
        customer.is_active = not customer.is_active
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: int) -> Customer:
    customer = get_customer(db, customer_id)
    if db.query(Sale).filter(Sale.customer_id == customer.id).count():
        raise BadRequestError("Cannot delete customer with recorded sales. Deactivate it instead.")
    if db.query(Invoice).filter(Invoice.customer_id == customer.id).count():
        raise BadRequestError("Cannot delete customer with issued invoices. Deactivate it instead.")
    with atomic(db):
        db.delete(customer)
    return customer
