from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, AfterValidator

from schemas.CommonSchemas import at_least, non_negative, optional_text, wib_datetime
from schemas.ProductSchemas import ProductBrief

IncomeDate = Annotated[datetime, AfterValidator(wib_datetime)]
SoldQuantity = Annotated[int, at_least(1, "Quantity minimal 1")]
UnitPrice = Annotated[Decimal, non_negative("Harga tidak boleh negatif")]


class IncomeCreate(BaseModel):
    date: IncomeDate
    product_id: int
    quantity: SoldQuantity
    # defaults to the product's selling price
    unit_price: Optional[UnitPrice] = None
    customer_name: Annotated[Optional[str], optional_text(100)] = None
    notes: Annotated[Optional[str], optional_text(500)] = None


class IncomeUpdate(BaseModel):
    date: Optional[IncomeDate] = None
    product_id: Optional[int] = None
    quantity: Optional[SoldQuantity] = None
    unit_price: Optional[UnitPrice] = None
    customer_name: Annotated[Optional[str], optional_text(100)] = None
    notes: Annotated[Optional[str], optional_text(500)] = None


class IncomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    date: datetime
    product_id: Optional[int] = None
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    customer_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    product: Optional[ProductBrief] = Field(
        default=None,
        validation_alias=AliasChoices("product_rel", "product"),
    )
