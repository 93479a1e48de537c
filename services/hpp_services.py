import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from models.Material import Material
from models.Product import Product, ProductMaterial

logger = logging.getLogger(__name__)

MaterialLine = Tuple[Optional[int], Decimal]


class HppService:
    """
    Harga Pokok Produksi (cost of goods) for a product's bill of materials.

    hpp = sum(material.price_per_unit * quantity) over lines whose material
    resolves for the owner. Lines pointing at a missing (or someone else's)
    material contribute nothing.
    """

    @staticmethod
    def sum_material_costs(lines: Iterable[MaterialLine], prices: Dict[int, Decimal]) -> Decimal:
        total = Decimal("0")
        for material_id, quantity in lines:
            price = prices.get(material_id)
            if price is None:
                continue
            total += Decimal(price) * Decimal(quantity)
        return total

    @staticmethod
    def load_prices(db: Session, owner_id: int, material_ids: Iterable[Optional[int]]) -> Dict[int, Decimal]:
        ids = {m for m in material_ids if m is not None}
        if not ids:
            return {}
        rows = (
            db.query(Material.id, Material.price_per_unit)
            .filter(Material.owner_id == owner_id, Material.id.in_(ids))
            .all()
        )
        return {row.id: Decimal(row.price_per_unit) for row in rows}

    @classmethod
    def calculate(cls, db: Session, owner_id: int, lines: List[MaterialLine]) -> Decimal:
        if not lines:
            return Decimal("0")
        prices = cls.load_prices(db, owner_id, [material_id for material_id, _ in lines])
        return cls.sum_material_costs(lines, prices)

    @classmethod
    def apply_materials(cls, db: Session, product: Product, lines: List[MaterialLine]) -> Decimal:
        """Replaces the product's bill of materials and re-costs it."""
        product.materials = [
            ProductMaterial(material_id=material_id, quantity=quantity)
            for material_id, quantity in lines
        ]
        product.hpp = cls.calculate(db, product.owner_id, lines)
        return product.hpp

    @classmethod
    def recalculate(cls, db: Session, product: Product) -> Decimal:
        """Re-costs the stored bill of materials at current material prices."""
        lines = [(line.material_id, line.quantity) for line in product.materials]
        old_hpp = product.hpp
        product.hpp = cls.calculate(db, product.owner_id, lines)
        logger.info("Product %s hpp recalculated: %s -> %s", product.id, old_hpp, product.hpp)
        return product.hpp
