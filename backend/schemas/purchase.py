# backend/schemas/purchase.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class PurchaseItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    # Defaults to the product's cost price
    unit_cost: Optional[float] = Field(None, ge=0)


class PurchaseCreate(BaseModel):
    supplier_id: int
    items: List[PurchaseItemCreate]
    notes: Optional[str] = None


class PurchaseItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_cost: float
    total_cost: float

    model_config = ConfigDict(from_attributes=True)


class PurchaseOut(BaseModel):
    id: int
    supplier_id: int
    user_id: int
    total_amount: float
    notes: Optional[str] = None
    created_at: datetime
    items: List[PurchaseItemOut]

    model_config = ConfigDict(from_attributes=True)


class PurchasePage(BaseModel):
    items: List[PurchaseOut]
    total: int
    page: int
    page_size: int
