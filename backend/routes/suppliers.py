# backend/routes/suppliers.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.catalog import SupplierCreate, SupplierUpdate, SupplierOut
from services import supplier_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])

can_read = role_required(Role.CASHIER)
can_manage = role_required(Role.MANAGER)


@router.get("", response_model=List[SupplierOut])
def list_suppliers(
    q: Optional[str] = Query(None, description="Search by name or contact person"),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_read),
):
    return supplier_service.list_suppliers(db, q=q, include_inactive=include_inactive)


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return supplier_service.get_supplier(db, supplier_id)


@router.post("", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: SupplierCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    supplier = supplier_service.create_supplier(db, payload)
    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier.id})
    return supplier


@router.patch("/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    supplier = supplier_service.update_supplier(db, supplier_id, payload)
    write_log(db, user_id=current_user.id, action="SUPPLIER_UPDATE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier.id})
    return supplier


@router.patch("/{supplier_id}/toggle-active", response_model=SupplierOut)
def toggle_supplier(
    supplier_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    supplier = supplier_service.toggle_active(db, supplier_id)
    write_log(db, user_id=current_user.id, action="SUPPLIER_TOGGLE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier.id, "is_active": supplier.is_active})
    return supplier


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    supplier = supplier_service.delete_supplier(db, supplier_id)
    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier_id})
    return {"message": f"Supplier {supplier.name} has been deleted"}
