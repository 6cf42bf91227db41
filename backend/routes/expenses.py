# backend/routes/expenses.py
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.expense import ExpenseCreate, ExpenseOut, ExpensePage
from services import expense_service
from utils.audit import write_log, client_ip
from utils.time_utils import parse_iso
from utils.tokenJWT import role_required

router = APIRouter(prefix="/expenses", tags=["Expenses"])

manager = role_required(Role.MANAGER)


@router.get("", response_model=ExpensePage)
def list_expenses(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    return expense_service.list_expenses(
        db,
        start_date=parse_iso(start_date),
        end_date=parse_iso(end_date, end_of_day=True),
        category=category, page=page, page_size=page_size,
    )


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, db: Session = Depends(get_db), current_user: User = Depends(manager)):
    return expense_service.get_expense(db, expense_id)


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager),
):
    expense = expense_service.create_expense(db, payload, current_user)
    write_log(db, user_id=current_user.id, action="EXPENSE_CREATE", resource="expenses",
              ip=client_ip(request), meta={"id": expense.id, "amount": expense.amount})
    return expense
