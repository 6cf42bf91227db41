# schemas/reports.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

# --- Sales report ---
class SalesReportSummary(BaseModel):
    total_sales: int
    total_revenue: float
    total_discount: float
    total_tax: float
    average_sale_value: float
    total_items: int

class DailySalesItem(BaseModel):
    date: str
    total_sales: int
    total_revenue: float
    total_discount: float
    total_tax: float
    average_sale_value: float

class TopSellingProduct(BaseModel):
    id: int
    name: str
    sku: str
    category_name: Optional[str] = None
    total_quantity_sold: int
    total_revenue: float
    average_price: float

class CategorySales(BaseModel):
    id: int
    name: str
    total_sales: int
    total_quantity: int
    total_revenue: float
    percentage: float

class PaymentMethodStats(BaseModel):
    method: str
    count: int
    total_amount: float
    percentage: float

class DateRange(BaseModel):
    start_date: str
    end_date: str

class SalesReportResponse(BaseModel):
    summary: SalesReportSummary
    daily_summary: List[DailySalesItem]
    top_selling_products: List[TopSellingProduct]
    category_breakdown: List[CategorySales]
    payment_method_stats: List[PaymentMethodStats]
    date_range: DateRange

# --- Expense report ---
class ExpenseReportSummary(BaseModel):
    total_expenses: int
    total_amount: float
    average_expense: float

class DailyExpenseItem(BaseModel):
    date: str
    total_expenses: int
    total_amount: float

class ExpenseCategory(BaseModel):
    category: str
    count: int
    total_amount: float
    percentage: float

class ExpenseReportResponse(BaseModel):
    summary: ExpenseReportSummary
    daily_summary: List[DailyExpenseItem]
    category_breakdown: List[ExpenseCategory]
    date_range: DateRange

# --- Inventory ---
class InventoryItem(BaseModel):
    product_id: int
    name: str
    sku: str
    category_name: Optional[str] = None
    supplier_name: Optional[str] = None
    quantity: int
    min_quantity: int
    price: float
    cost_price: float
    stock_value: float
    is_low_stock: bool

class InventoryReport(BaseModel):
    items: List[InventoryItem]
    total_products: int
    total_units: int
    total_stock_value: float
    low_stock_count: int

# Schemas for low stock alerting
class LowStockItem(BaseModel):
    product_id: int
    name: str
    sku: str
    quantity: int
    min_quantity: int

class LowStockPage(BaseModel):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int

# --- Dashboard ---
class TodaySales(BaseModel):
    total_sales: int
    total_revenue: float
    total_discount: float
    total_tax: float
    average_sale_value: float
    items_sold: int

class DashboardTopProduct(BaseModel):
    product_id: int
    product_name: str
    total_quantity_sold: int
    total_revenue: float

class DashboardSummary(BaseModel):
    today_sales: TodaySales
    top_selling_products: List[DashboardTopProduct]
    low_stock_products: List[LowStockItem]
    customers_added_today: int
    last_updated: datetime

class DashboardStats(BaseModel):
    total_sales: int
    total_products: int
    total_customers: int
    total_revenue: float
    low_stock_products: int
