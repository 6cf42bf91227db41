# backend/routes/customers.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.catalog import CustomerCreate, CustomerUpdate, CustomerOut
from services import customer_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/customers", tags=["Customers"])

# Cashiers register customers at the till; removal is for managers
can_use = role_required(Role.CASHIER)
can_manage = role_required(Role.MANAGER)


class CustomerPage(BaseModel):
    items: List[CustomerOut]
    total: int
    page: int
    page_size: int


@router.get("", response_model=CustomerPage)
def list_customers(
    q: Optional[str] = Query(None, description="Search by name, email or phone"),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_use),
):
    return customer_service.list_customers(
        db, q=q, include_inactive=include_inactive, page=page, page_size=page_size
    )


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_use)):
    return customer_service.get_customer(db, customer_id)


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_use),
):
    customer = customer_service.create_customer(db, payload)
    write_log(db, user_id=current_user.id, action="CUSTOMER_CREATE", resource="customers",
              ip=client_ip(request), meta={"id": customer.id})
    return customer


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_use),
):
    customer = customer_service.update_customer(db, customer_id, payload)
    write_log(db, user_id=current_user.id, action="CUSTOMER_UPDATE", resource="customers",
              ip=client_ip(request), meta={"id": customer.id})
    return customer


@router.patch("/{customer_id}/toggle-active", response_model=CustomerOut)
def toggle_customer(
    customer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    customer = customer_service.toggle_active(db, customer_id)
    write_log(db, user_id=current_user.id, action="CUSTOMER_TOGGLE", resource="customers",
              ip=client_ip(request), meta={"id": customer.id, "is_active": customer.is_active})
    return customer


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    customer = customer_service.delete_customer(db, customer_id)
    write_log(db, user_id=current_user.id, action="CUSTOMER_DELETE", resource="customers",
              ip=client_ip(request), meta={"id": customer_id})
    return {"message": f"Customer {customer.first_name} {customer.last_name} has been deleted"}
