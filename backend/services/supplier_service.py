# services/supplier_service.py
from typing import Optional

from sqlalchemy.orm import Session

from database import atomic
from models.catalog import Supplier
from models.product import Product
from models.purchase import Purchase
from schemas.catalog import SupplierCreate, SupplierUpdate
from utils.errors import NotFoundError, BadRequestError


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError(f"Supplier with ID {supplier_id} not found")
    return supplier


def list_suppliers(db: Session, q: Optional[str] = None, include_inactive: bool = False):
    query = db.query(Supplier)
    if not include_inactive:
        query = query.filter(Supplier.is_active.is_(True))
    if q:
        like = f"%{q}%"
        query = query.filter(Supplier.name.ilike(like) | Supplier.contact_person.ilike(like))
    return query.order_by(Supplier.name.asc()).all()


def create_supplier(db: Session, payload: SupplierCreate) -> Supplier:
    supplier = Supplier(**payload.model_dump())
    with atomic(db):
        db.add(supplier)
    db.refresh(supplier)
    return supplier


def update_supplier(db: Session, supplier_id: int, payload: SupplierUpdate) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    with atomic(db):
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(supplier, field, value)
    db.refresh(supplier)
    return supplier


def toggle_active(db: Session, supplier_id: int) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    with atomic(db):
        supplier.is_active = not supplier.is_active
    db.refresh(supplier)
    return supplier


def delete_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    if db.query(Product).filter(Product.supplier_id == supplier.id).count():
        raise BadRequestError("Cannot delete supplier with associated products. Deactivate it instead.")
    if db.query(Purchase).filter(Purchase.supplier_id == supplier.id).count():
        raise BadRequestError("Cannot delete supplier with recorded purchases. Deactivate it instead.")
    with atomic(db):
        db.delete(supplier)
    return supplier
