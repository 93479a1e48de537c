from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict

from models.Material import MaterialUnitEnum
from schemas.CommonSchemas import non_negative, optional_text, required_text

MaterialName = Annotated[str, required_text("Nama bahan wajib diisi", 100)]
Price = Annotated[Decimal, non_negative("Harga tidak boleh negatif")]
Stock = Annotated[Decimal, non_negative("Stok tidak boleh negatif")]
Description = Annotated[Optional[str], optional_text(500)]


class MaterialBase(BaseModel):
    name: MaterialName
    unit: MaterialUnitEnum
    price_per_unit: Price
    stock: Stock = Decimal("0")
    description: Description = None


class MaterialCreate(MaterialBase):
    # books the initial stock as a bahan_baku expense in the same transaction
    record_expense: bool = True


class MaterialUpdate(BaseModel):
    name: Optional[MaterialName] = None
    unit: Optional[MaterialUnitEnum] = None
    price_per_unit: Optional[Price] = None
    stock: Optional[Stock] = None
    description: Description = None


class MaterialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: MaterialUnitEnum
    price_per_unit: Decimal
    stock: Decimal
    description: Optional[str] = None
    created_at: datetime


class MaterialBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: MaterialUnitEnum
    price_per_unit: Decimal
