import enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from database import Base
from utils.time_utils import utcnow


class MovementType(str, enum.Enum):
    SALE = "SALE"
    SALE_RESTORE = "SALE_RESTORE"
    PURCHASE = "PURCHASE"
    ADJUSTMENT = "ADJUSTMENT"


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Signed: negative takes stock out, positive puts it back
    quantity_change = Column(Integer, nullable=False)
    type = Column(Enum(MovementType), nullable=False, index=True)

    # Source document, e.g. "sale:12" or "purchase:3"
    reference = Column(String, nullable=True)
    reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    product = relationship("Product")
    user = relationship("User")

    @property
    def product_name(self):
        return self.product.name if self.product else None
