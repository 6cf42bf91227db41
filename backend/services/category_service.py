# services/category_service.py
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import atomic
from models.catalog import Category
from models.product import Product
from schemas.catalog import CategoryCreate, CategoryUpdate
from utils.errors import NotFoundError, BadRequestError, ConflictError

logger = logging.getLogger(__name__)


def _by_name(db: Session, name: str) -> Optional[Category]:
    return db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()


def get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError(f"Category with ID {category_id} not found")
    return category


def find_by_name(db: Session, name: str) -> Category:
    category = _by_name(db, name)
    if not category:
        raise NotFoundError(f"Category with name {name} not found")
    return category


def list_categories(db: Session, include_inactive: bool = False):
    query = db.query(Category)
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name.asc()).all()


def create_category(db: Session, payload: CategoryCreate) -> Category:
    if _by_name(db, payload.name):
        raise ConflictError(f"Category with name {payload.name} already exists")
    category = Category(name=payload.name.strip(), description=payload.description)
    with atomic(db):
        db.add(category)
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, payload: CategoryUpdate) -> Category:
    category = get_category(db, category_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        existing = _by_name(db, data["name"])
        if existing and existing.id != category.id:
            raise BadRequestError(f"Category with name {data['name']} already exists")
        data["name"] = data["name"].strip()
    with atomic(db):
        for field, value in data.items():
            setattr(category, field, value)
    db.refresh(category)
    return category


def toggle_active(db: Session, category_id: int) -> Category:
    category = get_category(db, category_id)
    with atomic(db):
        category.is_active = not category.is_active
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> Category:
    category = get_category(db, category_id)
    product_count = db.query(Product).filter(Product.category_id == category.id).count()
    if product_count:
        raise BadRequestError(
            f"Cannot delete category with {product_count} associated products. "
            "Move or delete the products first."
        )
    with atomic(db):
        db.delete(category)
    logger.info("Deleted category %s", category.name)
    return category
