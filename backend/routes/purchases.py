# backend/routes/purchases.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.purchase import PurchaseCreate, PurchaseOut, PurchasePage
from services import purchase_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/purchases", tags=["Purchases"])

manager = role_required(Role.MANAGER)


@router.get("", response_model=PurchasePage)
def list_purchases(
    supplier_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    return purchase_service.list_purchases(db, supplier_id=supplier_id, page=page, page_size=page_size)


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(purchase_id: int, db: Session = Depends(get_db), current_user: User = Depends(manager)):
    return purchase_service.get_purchase(db, purchase_id)


# Register goods received from a supplier
@router.post("", response_model=PurchaseOut, status_code=status.HTTP_201_CREATED)
def create_purchase(
    payload: PurchaseCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    purchase = purchase_service.create_purchase(db, payload, current_user)
    write_log(db, user_id=current_user.id, action="PURCHASE_CREATE", resource="purchases",
              ip=client_ip(request), meta={"id": purchase.id, "total_amount": purchase.total_amount})
    return purchase
