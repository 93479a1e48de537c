from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.CommonSchemas import non_negative, optional_text, required_text
from schemas.MaterialSchemas import MaterialBrief

ProductName = Annotated[str, required_text("Nama produk wajib diisi", 100)]
SellingPrice = Annotated[Decimal, non_negative("Harga jual tidak boleh negatif")]
Quantity = Annotated[Decimal, non_negative("Quantity tidak boleh negatif")]


class ProductMaterialIn(BaseModel):
    material_id: int
    quantity: Quantity


class ProductCreate(BaseModel):
    name: ProductName
    description: Annotated[Optional[str], optional_text(500)] = None
    selling_price: SellingPrice
    materials: List[ProductMaterialIn] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: Optional[ProductName] = None
    description: Annotated[Optional[str], optional_text(500)] = None
    selling_price: Optional[SellingPrice] = None
    materials: Optional[List[ProductMaterialIn]] = None


class ProductMaterialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    material_id: Optional[int] = None
    quantity: Decimal
    # None when the material has been deleted since the product was costed
    material: Optional[MaterialBrief] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    selling_price: Decimal
    hpp: Decimal
    margin: Decimal
    materials: List[ProductMaterialOut] = Field(default_factory=list)
    created_at: datetime


class ProductBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    selling_price: Decimal
