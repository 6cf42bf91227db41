# backend/routes/categories.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.catalog import CategoryCreate, CategoryUpdate, CategoryOut
from services import category_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/categories", tags=["Categories"])

can_read = role_required(Role.CASHIER)
can_manage = role_required(Role.MANAGER)


@router.get("", response_model=List[CategoryOut])
def list_categories(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_read),
):
    return category_service.list_categories(db, include_inactive=include_inactive)


@router.get("/name/{name}", response_model=CategoryOut)
def get_by_name(name: str, db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return category_service.find_by_name(db, name)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_read)):
    return category_service.get_category(db, category_id)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    category = category_service.create_category(db, payload)
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id, "name": category.name})
    return category


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    category = category_service.update_category(db, category_id, payload)
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})
    return category


@router.patch("/{category_id}/toggle-active", response_model=CategoryOut)
def toggle_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    category = category_service.toggle_active(db, category_id)
    write_log(db, user_id=current_user.id, action="CATEGORY_TOGGLE", resource="categories",
              ip=client_ip(request), meta={"id": category.id, "is_active": category.is_active})
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    category = category_service.delete_category(db, category_id)
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              ip=client_ip(request), meta={"id": category_id, "name": category.name})
    return {"message": f"Category {category.name} has been deleted"}
