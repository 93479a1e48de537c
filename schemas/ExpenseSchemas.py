from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, AfterValidator

from models.Expense import ExpenseCategoryEnum
from models.Material import MaterialUnitEnum
from schemas.CommonSchemas import non_negative, required_text, wib_datetime

ExpenseDate = Annotated[datetime, AfterValidator(wib_datetime)]
Description = Annotated[str, required_text("Deskripsi wajib diisi", 200)]
Amount = Annotated[Decimal, non_negative("Jumlah tidak boleh negatif")]
Quantity = Annotated[Decimal, non_negative("Quantity tidak boleh negatif")]


class ExpenseCreate(BaseModel):
    date: ExpenseDate
    description: Description
    category: ExpenseCategoryEnum
    product_id: Optional[int] = None
    material_id: Optional[int] = None
    quantity: Optional[Quantity] = None
    amount: Amount


class ExpenseUpdate(BaseModel):
    date: Optional[ExpenseDate] = None
    description: Optional[Description] = None
    category: Optional[ExpenseCategoryEnum] = None
    product_id: Optional[int] = None
    material_id: Optional[int] = None
    quantity: Optional[Quantity] = None
    amount: Optional[Amount] = None


class ExpenseProductRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ExpenseMaterialRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: MaterialUnitEnum


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    date: datetime
    description: str
    category: ExpenseCategoryEnum
    product_id: Optional[int] = None
    material_id: Optional[int] = None
    quantity: Optional[Decimal] = None
    amount: Decimal
    created_at: datetime

    product: Optional[ExpenseProductRef] = Field(
        default=None,
        validation_alias=AliasChoices("product_rel", "product"),
    )
    material: Optional[ExpenseMaterialRef] = Field(
        default=None,
        validation_alias=AliasChoices("material_rel", "material"),
    )
