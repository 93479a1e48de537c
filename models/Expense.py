import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Enum
from sqlalchemy.orm import relationship

from database import Base
from models.mixin.TimestampMixin import TimestampMixin
from utils import get_jkt_now


class ExpenseCategoryEnum(enum.Enum):
    BAHAN_BAKU = "bahan_baku"
    PRODUKSI = "produksi"
    OPERASIONAL = "operasional"


EXPENSE_CATEGORY_LABELS = {
    ExpenseCategoryEnum.BAHAN_BAKU: "Bahan Baku",
    ExpenseCategoryEnum.PRODUKSI: "Produksi",
    ExpenseCategoryEnum.OPERASIONAL: "Operasional",
}


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, default=get_jkt_now, index=True)
    description = Column(String(200), nullable=False)
    category = Column(Enum(ExpenseCategoryEnum), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Numeric(24, 7), nullable=True)
    amount = Column(Numeric(24, 7), nullable=False, default=0)

    owner = relationship("User", back_populates="expenses")
    product_rel = relationship("Product")
    material_rel = relationship("Material")
