import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter
from fastapi.params import Depends, Query
from sqlalchemy.orm import Session, joinedload
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_current_user, rate_limit_user
from models.Expense import Expense, ExpenseCategoryEnum
from models.Material import Material
from models.Product import Product
from models.User import User
from schemas.ExpenseSchemas import ExpenseCreate, ExpenseOut, ExpenseUpdate
from schemas.PaginatedResponseSchemas import MessageResponse, PaginatedResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_expense(db: Session, expense_id: int, owner_id: int) -> Expense:
    expense = (
        db.query(Expense)
        .options(joinedload(Expense.product_rel), joinedload(Expense.material_rel))
        .filter(Expense.id == expense_id, Expense.owner_id == owner_id)
        .first()
    )
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pengeluaran tidak ditemukan")
    return expense


def _check_references(db: Session, owner_id: int, product_id: Optional[int], material_id: Optional[int]) -> None:
    if product_id is not None:
        if not db.query(Product.id).filter(Product.id == product_id, Product.owner_id == owner_id).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Produk tidak ditemukan")
    if material_id is not None:
        if not db.query(Material.id).filter(Material.id == material_id, Material.owner_id == owner_id).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bahan tidak ditemukan")


@router.get("", response_model=PaginatedResponse[ExpenseOut])
def get_all_expenses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    category: Optional[ExpenseCategoryEnum] = None,
    start_date: Optional[date] = Query(None, description="Filter by date"),
    end_date: Optional[date] = Query(None, description="Filter by date (inclusive)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    query = db.query(Expense).filter(Expense.owner_id == current_user.id)

    if category is not None:
        query = query.filter(Expense.category == category)

    if start_date:
        query = query.filter(Expense.date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Expense.date <= datetime.combine(end_date, time.max))

    total_data = query.count()
    paginated_data = (
        query.options(joinedload(Expense.product_rel), joinedload(Expense.material_rel))
        .order_by(Expense.date.desc(), Expense.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return {
        "data": paginated_data,
        "total": total_data,
    }


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_expense(db, expense_id, current_user.id)


@router.post(
    "",
    response_model=ExpenseOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_user)],
)
def create_expense(
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_references(db, current_user.id, expense_data.product_id, expense_data.material_id)

    expense = Expense(owner_id=current_user.id, **expense_data.model_dump())

    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Expense %s recorded by user %s: %s", expense.id, current_user.id, expense.amount)
    return expense


@router.put("/{expense_id}", response_model=ExpenseOut, dependencies=[Depends(rate_limit_user)])
def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = _get_expense(db, expense_id, current_user.id)

    update_data = expense_data.model_dump(exclude_unset=True)
    _check_references(db, current_user.id, update_data.get("product_id"), update_data.get("material_id"))

    for field, value in update_data.items():
        # product, material and quantity may be cleared; the rest are required
        if value is None and field not in ("product_id", "material_id", "quantity"):
            continue
        setattr(expense, field, value)

    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}", response_model=MessageResponse, dependencies=[Depends(rate_limit_user)])
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = _get_expense(db, expense_id, current_user.id)

    db.delete(expense)
    db.commit()
    return {"message": "Pengeluaran berhasil dihapus"}
