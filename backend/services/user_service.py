# services/user_service.py
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import atomic
from models.expense import Expense
from models.invoice import Invoice
from models.purchase import Purchase
from models.sale import Sale
from models.stock import StockMovement
from models.users import User, Role
from schemas.user import UserCreate, UserUpdate
from utils.errors import NotFoundError, BadRequestError, ConflictError
from utils.hashing import get_password_hash
from utils.pagination import paginate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


def create_user(db: Session, payload: UserCreate) -> User:
    if get_by_email(db, payload.email):
        raise ConflictError("Email already registered")

    user = User(
        email=normalize_email(payload.email),
        password_hash=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        is_active=payload.is_active,
    )
    with atomic(db):
        db.add(user)
    db.refresh(user)
    logger.info("Created user %s with role %s", user.email, user.role.value)
    return user


def list_users(db: Session, *, q: Optional[str] = None, role: Optional[Role] = None,
               is_active: Optional[bool] = None, page: int = 1, page_size: int = 20) -> dict:
    query = db.query(User)
    if q:
        like = f"%{q.lower()}%"
        query = query.filter(
            User.email.ilike(like) | User.first_name.ilike(like) | User.last_name.ilike(like)
        )
    if role is not None:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    return paginate(query.order_by(User.id.asc()), page, page_size)


def update_user(db: Session, user_id: int, payload: UserUpdate) -> User:
    user = get_user(db, user_id)
    data = payload.model_dump(exclude_unset=True)
    password = data.pop("password", None)
    with atomic(db):
        for field, value in data.items():
            setattr(user, field, value)
        if password:
            user.password_hash = get_password_hash(password)
    db.refresh(user)
    return user


def set_role(db: Session, user_id: int, role: Role) -> User:
    user = get_user(db, user_id)
    with atomic(db):
        user.role = role
    db.refresh(user)
    logger.info("Role of user %s changed to %s", user.email, role.value)
    return user


def toggle_active(db: Session, user_id: int, current_user: User) -> User:
    user = get_user(db, user_id)
    if user.id == current_user.id:
        raise BadRequestError("You cannot deactivate your own account")
    with atomic(db):
        user.is_active = not user.is_active
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, current_user: User) -> User:
    user = get_user(db, user_id)
    # Prevent self-deletion
    if user.id == current_user.id:
        raise BadRequestError("You cannot delete your own account")
    # Recorded work keeps its author; such accounts can only be deactivated
    for model, label in ((Sale, "sales"), (Invoice, "invoices"), (Purchase, "purchases"),
                         (Expense, "expenses"), (StockMovement, "stock movements")):
        if db.query(model).filter(model.user_id == user.id).count():
            raise BadRequestError(f"Cannot delete user with recorded {label}. Deactivate it instead.")
    with atomic(db):
        db.delete(user)
    return user
