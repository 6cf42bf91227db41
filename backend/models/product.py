# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from utils.time_utils import utcnow


# Sellable item. Stock is kept in `quantity`; the CHECK constraint backs up
# the conditional updates in services/inventory_service.py
class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    sku = Column(String, unique=True, nullable=False, index=True)
    barcode = Column(String, unique=True, nullable=True, index=True)

    price = Column(Float, nullable=False)
    cost_price = Column(Float, nullable=False, default=0.0)

    quantity = Column(Integer, nullable=False, default=0)
    min_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def supplier_name(self):
        return self.supplier.name if self.supplier else None

    @property
    def is_low_stock(self):
        return self.quantity <= self.min_quantity
