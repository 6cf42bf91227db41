from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    category: str = Field(min_length=1)
    date: Optional[datetime] = None
    notes: Optional[str] = None


class ExpenseOut(BaseModel):
    id: int
    description: str
    amount: float
    category: str
    date: datetime
    user_id: int
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ExpensePage(BaseModel):
    items: List[ExpenseOut]
    total: int
    page: int
    page_size: int
