# schemas/invoice.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from models.invoice import InvoiceStatus

# Input schema for a single line item in an invoice
class InvoiceItemCreate(BaseModel):
    product_id: Optional[int] = None
    description: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)
    discount: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)

# Input schema for creating a new invoice; items may be omitted when
# the invoice is issued for a sale
class InvoiceCreate(BaseModel):
    customer_id: int
    sale_id: Optional[int] = None
    items: List[InvoiceItemCreate] = Field(default_factory=list)
    due_date: datetime
    discount: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None

class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus
    paid_date: Optional[datetime] = None

# Output schema for an invoice line item
class InvoiceItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    description: str
    quantity: int
    unit_price: float
    discount: float
    tax_amount: float
    total_price: float

    model_config = ConfigDict(from_attributes=True)

# Output schema for a single invoice
class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    customer_id: int
    user_id: int
    sale_id: Optional[int] = None
    subtotal: float
    discount: float
    tax_amount: float
    total_amount: float
    status: InvoiceStatus
    invoice_date: datetime
    due_date: datetime
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    items: List[InvoiceItemResponse]

    model_config = ConfigDict(from_attributes=True)

# Paginated response wrapper for invoice lists
class InvoiceListPage(BaseModel):
    items: List[InvoiceResponse]
    total: int
    page: int
    page_size: int

class InvoiceCancelResponse(BaseModel):
    message: str
    invoice: InvoiceResponse

class InvoiceStats(BaseModel):
    total_invoices: int
    unpaid_invoices: int
    partially_paid_invoices: int
    paid_invoices: int
    overdue_invoices: int
    cancelled_invoices: int
    total_amount: float
    paid_amount: float
    unpaid_amount: float

class OverdueResult(BaseModel):
    updated: int
