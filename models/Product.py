from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.mixin.TimestampMixin import TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="_owner_product_name_uc"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    selling_price = Column(Numeric(24, 7), nullable=False, default=0)

    # Harga Pokok Produksi, persisted whenever the material list is written
    hpp = Column(Numeric(24, 7), nullable=False, default=0)

    owner = relationship("User", back_populates="products")
    materials = relationship(
        "ProductMaterial",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductMaterial.id",
    )

    @property
    def margin(self) -> Decimal:
        return Decimal(self.selling_price or 0) - Decimal(self.hpp or 0)


class ProductMaterial(Base):
    __tablename__ = "product_materials"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    # a deleted material leaves the line unresolved; costing skips it
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Numeric(24, 7), nullable=False, default=0)

    product = relationship("Product", back_populates="materials")
    material_rel = relationship("Material")

    @property
    def material(self):
        # a line may still carry the id of a material that was deleted
        material = self.material_rel
        if material is None or material.owner_id != self.product.owner_id:
            return None
        return material
