# backend/routes/stock.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session

from database import get_db
from models.stock import MovementType
from models.users import User, Role
from services import inventory_service
from utils.tokenJWT import role_required
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])


# Movement history: sales, cancellations, purchases and manual corrections
@router.get("/movements", response_model=stock_schemas.StockMovementPage)
def list_movements(
    product_id: Optional[int] = Query(None),
    type: Optional[MovementType] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.MANAGER)),
):
    return inventory_service.list_movements(
        db, product_id=product_id, movement_type=type, page=page, page_size=page_size
    )
