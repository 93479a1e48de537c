import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Text, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.mixin.TimestampMixin import TimestampMixin


class MaterialUnitEnum(enum.Enum):
    KG = "kg"
    GRAM = "gram"
    LITER = "liter"
    ML = "ml"
    PCS = "pcs"
    PACK = "pack"
    METER = "meter"
    CM = "cm"
    BOX = "box"


class Material(Base, TimestampMixin):
    __tablename__ = "materials"
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="_owner_material_name_uc"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    unit = Column(Enum(MaterialUnitEnum), nullable=False)
    price_per_unit = Column(Numeric(24, 7), nullable=False, default=0)
    stock = Column(Numeric(24, 7), nullable=False, default=0)
    description = Column(Text, nullable=True)

    owner = relationship("User", back_populates="materials")
