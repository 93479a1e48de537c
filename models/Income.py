from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Text, DateTime
from sqlalchemy.orm import relationship

from database import Base
from models.mixin.TimestampMixin import TimestampMixin
from utils import get_jkt_now


class Income(Base, TimestampMixin):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, default=get_jkt_now, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(24, 7), nullable=False, default=0)
    total_amount = Column(Numeric(24, 7), nullable=False, default=0)
    customer_name = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    owner = relationship("User", back_populates="incomes")
    product_rel = relationship("Product")
