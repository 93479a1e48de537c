import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter
from fastapi.params import Depends, Query
from sqlalchemy.orm import Session, joinedload
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_current_user, rate_limit_user
from models.Income import Income
from models.Product import Product
from models.User import User
from schemas.IncomeSchemas import IncomeCreate, IncomeOut, IncomeUpdate
from schemas.PaginatedResponseSchemas import MessageResponse, PaginatedResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_income(db: Session, income_id: int, owner_id: int) -> Income:
    income = (
        db.query(Income)
        .options(joinedload(Income.product_rel))
        .filter(Income.id == income_id, Income.owner_id == owner_id)
        .first()
    )
    if not income:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pemasukan tidak ditemukan")
    return income


def _get_owned_product(db: Session, product_id: int, owner_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.owner_id == owner_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Produk tidak ditemukan")
    return product


@router.get("", response_model=PaginatedResponse[IncomeOut])
def get_all_income(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    product_id: Optional[int] = None,
    start_date: Optional[date] = Query(None, description="Filter by date"),
    end_date: Optional[date] = Query(None, description="Filter by date (inclusive)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    query = db.query(Income).filter(Income.owner_id == current_user.id)

    if product_id is not None:
        query = query.filter(Income.product_id == product_id)

    if start_date:
        query = query.filter(Income.date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Income.date <= datetime.combine(end_date, time.max))

    total_data = query.count()
    paginated_data = (
        query.options(joinedload(Income.product_rel))
        .order_by(Income.date.desc(), Income.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return {
        "data": paginated_data,
        "total": total_data,
    }


@router.get("/{income_id}", response_model=IncomeOut)
def get_income(
    income_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_income(db, income_id, current_user.id)


@router.post(
    "",
    response_model=IncomeOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_user)],
)
def create_income(
    income_data: IncomeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_owned_product(db, income_data.product_id, current_user.id)

    unit_price = income_data.unit_price
    if unit_price is None:
        unit_price = Decimal(product.selling_price)

    income = Income(
        owner_id=current_user.id,
        date=income_data.date,
        product_id=product.id,
        quantity=income_data.quantity,
        unit_price=unit_price,
        total_amount=unit_price * income_data.quantity,
        customer_name=income_data.customer_name,
        notes=income_data.notes,
    )

    db.add(income)
    db.commit()
    db.refresh(income)
    logger.info("Income %s recorded by user %s: %s", income.id, current_user.id, income.total_amount)
    return income


@router.put("/{income_id}", response_model=IncomeOut, dependencies=[Depends(rate_limit_user)])
def update_income(
    income_id: int,
    income_data: IncomeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    income = _get_income(db, income_id, current_user.id)

    update_data = income_data.model_dump(exclude_unset=True)
    if update_data.get("product_id") is not None:
        _get_owned_product(db, update_data["product_id"], current_user.id)

    for field, value in update_data.items():
        if value is None and field not in ("customer_name", "notes"):
            continue
        setattr(income, field, value)

    # clients never set the total
    income.total_amount = Decimal(income.unit_price) * income.quantity

    db.commit()
    db.refresh(income)
    return income


@router.delete("/{income_id}", response_model=MessageResponse, dependencies=[Depends(rate_limit_user)])
def delete_income(
    income_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    income = _get_income(db, income_id, current_user.id)

    db.delete(income)
    db.commit()
    return {"message": "Pemasukan berhasil dihapus"}
