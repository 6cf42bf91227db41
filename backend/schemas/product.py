# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    sku: str = Field(min_length=1)
    barcode: Optional[str] = None
    price: float = Field(ge=0)
    cost_price: float = Field(default=0.0, ge=0)
    quantity: int = Field(default=0, ge=0)
    min_quantity: int = Field(default=0, ge=0)
    category_id: int
    supplier_id: Optional[int] = None


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates
class ProductUpdate(ORMBase):
    """Schema for PATCH requests - all fields optional.

    Stock is changed through /products/{id}/stock, never here.
    """
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1)
    barcode: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    min_quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    is_active: Optional[bool] = None


# Signed stock correction
class StockAdjust(BaseModel):
    quantity: int = Field(description="Positive adds stock, negative removes it")
    reason: Optional[str] = None


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    is_active: bool
    created_at: datetime
    category_name: Optional[str] = None
    supplier_name: Optional[str] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
