# backend/routes/admin.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.user import UserCreate, UserUpdate, UserResponse, UserPage, RoleUpdate
from services import user_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import role_required

router = APIRouter(prefix="/users", tags=["Admin"])

admin_only = role_required(Role.ADMIN)


# Retrieve a list of users with filtering and pagination (Admin only)
@router.get("", response_model=UserPage)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by email or name"),
    role: Optional[Role] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return user_service.list_users(db, q=q, role=role, is_active=is_active, page=page, page_size=page_size)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.create_user(db, payload)
    write_log(db, user_id=current_user.id, action="USER_CREATE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "role": user.role.value})
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return user_service.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.update_user(db, user_id, payload)
    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users",
              ip=client_ip(request), meta={"id": user.id})
    return user


# Update user role (Admin only)
@router.put("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.set_role(db, user_id, new_role.role)
    write_log(db, user_id=current_user.id, action="USER_ROLE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "role": user.role.value})
    return user


@router.patch("/{user_id}/toggle-active", response_model=UserResponse)
def toggle_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.toggle_active(db, user_id, current_user)
    write_log(db, user_id=current_user.id, action="USER_TOGGLE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "is_active": user.is_active})
    return user


# Delete a user account (Admin only)
@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.delete_user(db, user_id, current_user)
    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"id": user_id, "email": user.email})
    return {"message": f"User {user.email} has been deleted"}
