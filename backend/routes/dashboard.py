# backend/routes/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, Role
from schemas.reports import DashboardSummary, DashboardStats
from services import dashboard_service
from utils.tokenJWT import role_required

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=DashboardSummary)
def get_summary(db: Session = Depends(get_db), current_user: User = Depends(role_required(Role.CASHIER))):
    return dashboard_service.get_summary(db)


@router.get("/stats", response_model=DashboardStats)
def get_stats(db: Session = Depends(get_db), current_user: User = Depends(role_required(Role.CASHIER))):
    return dashboard_service.get_stats(db)
