# backend/schemas/sale.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime

from models.sale import PaymentMethod, SaleStatus


# Input schema for a single sale line; price is taken from the product
class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    discount: float = Field(default=0.0, ge=0)


class SaleCreate(BaseModel):
    customer_id: Optional[int] = None
    items: List[SaleItemCreate]
    payment_method: PaymentMethod
    # Flat amounts: final = total - discount + tax_amount
    discount: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None


# Only metadata is editable; items and amounts are fixed once sold
class SaleUpdate(BaseModel):
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None


class SaleItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: float
    discount: float
    total_price: float

    model_config = ConfigDict(from_attributes=True)


class SaleOut(BaseModel):
    id: int
    customer_id: Optional[int] = None
    user_id: int
    total_amount: float
    discount: float
    tax_amount: float
    final_amount: float
    payment_method: PaymentMethod
    status: SaleStatus
    notes: Optional[str] = None
    created_at: datetime
    items: List[SaleItemOut]

    model_config = ConfigDict(from_attributes=True)


class SalePage(BaseModel):
    items: List[SaleOut]
    total: int
    page: int
    page_size: int


class SalesReport(BaseModel):
    total_sales: int
    total_revenue: float
    total_discount: float
    total_tax: float
    average_sale_value: float
    payment_method_stats: Dict[str, int]
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
