# services/expense_service.py
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from database import atomic
from models.expense import Expense
from models.users import User
from schemas.expense import ExpenseCreate
from utils.errors import NotFoundError, BadRequestError
from utils.pagination import paginate
from utils.time_utils import utcnow, to_naive_utc


def get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFoundError(f"Expense with ID {expense_id} not found")
    return expense


def create_expense(db: Session, payload: ExpenseCreate, user: User) -> Expense:
    expense = Expense(
        description=payload.description,
        amount=round(payload.amount, 2),
        category=payload.category.strip(),
        date=to_naive_utc(payload.date) or utcnow(),
        user_id=user.id,
        notes=payload.notes,
    )
    with atomic(db):
        db.add(expense)
    db.refresh(expense)
    return expense


def list_expenses(db: Session, *, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                  category: Optional[str] = None, page: int = 1, page_size: int = 20) -> dict:
    if start_date and end_date and start_date > end_date:
        raise BadRequestError("Start date must be before end date")
    query = db.query(Expense)
    if start_date:
        query = query.filter(Expense.date >= start_date)
    if end_date:
        query = query.filter(Expense.date <= end_date)
    if category:
        query = query.filter(Expense.category.ilike(category))
    query = query.order_by(Expense.date.desc(), Expense.id.desc())
    return paginate(query, page, page_size)
