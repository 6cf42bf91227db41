# backend/schemas/stock.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional

from models.stock import MovementType


# Schema for returning stock movement details
class StockMovementResponse(BaseModel):
    id: int
    created_at: datetime
    product_id: int
    product_name: Optional[str] = None
    user_id: Optional[int] = None
    quantity_change: int
    type: MovementType
    reference: Optional[str] = None
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementResponse]
    total: int
    page: int
    page_size: int
