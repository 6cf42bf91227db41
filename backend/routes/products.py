# backend/routes/products.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.product import ProductCreate, ProductUpdate, ProductOut, ProductListPage, StockAdjust
from services import product_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/products", tags=["Products"])

can_read = role_required(Role.CASHIER)
can_manage = role_required(Role.MANAGER)


# List products with search, filters and pagination
@router.get("", response_model=ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name, SKU or barcode"),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_read),
):
    return product_service.list_products(
        db, q=q, category_id=category_id, supplier_id=supplier_id,
        include_inactive=include_inactive, page=page, page_size=page_size,
    )


@router.get("/low-stock", response_model=List[ProductOut])
def low_stock(db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return product_service.low_stock(db)


@router.get("/sku/{sku}", response_model=ProductOut)
def get_by_sku(sku: str, db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return product_service.find_by_sku(db, sku)


@router.get("/barcode/{barcode}", response_model=ProductOut)
def get_by_barcode(barcode: str, db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return product_service.find_by_barcode(db, barcode)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return product_service.get_product(db, product_id)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    product = product_service.create_product(db, payload)
    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              ip=client_ip(request), meta={"id": product.id, "sku": product.sku})
    return product


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    product = product_service.update_product(db, product_id, payload)
    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              ip=client_ip(request), meta={"id": product.id, "fields": sorted(payload.model_fields_set)})
    return product


# Manual stock correction by a signed quantity
@router.patch("/{product_id}/stock", response_model=ProductOut)
def adjust_stock(
    product_id: int,
    payload: StockAdjust,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    product = product_service.adjust_stock(
        db, product_id, payload.quantity, user_id=current_user.id, reason=payload.reason
    )
    write_log(db, user_id=current_user.id, action="STOCK_ADJUSTMENT", resource="products",
              ip=client_ip(request), meta={"id": product.id, "delta": payload.quantity})
    return product


@router.patch("/{product_id}/toggle-active", response_model=ProductOut)
def toggle_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    product = product_service.toggle_active(db, product_id)
    write_log(db, user_id=current_user.id, action="PRODUCT_TOGGLE", resource="products",
              ip=client_ip(request), meta={"id": product.id, "is_active": product.is_active})
    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    product = product_service.delete_product(db, product_id)
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"id": product_id, "sku": product.sku})
    return {"message": f"Product {product.name} has been deleted"}
