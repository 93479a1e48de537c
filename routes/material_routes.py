import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter
from fastapi.params import Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_current_user, rate_limit_user
from models.Expense import Expense, ExpenseCategoryEnum
from models.Material import Material
from models.Product import ProductMaterial
from models.User import User
from schemas.MaterialSchemas import MaterialCreate, MaterialOut, MaterialUpdate
from schemas.PaginatedResponseSchemas import MessageResponse, PaginatedResponse
from utils import get_jkt_now

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_material(db: Session, material_id: int, owner_id: int) -> Material:
    material = (
        db.query(Material)
        .filter(Material.id == material_id, Material.owner_id == owner_id)
        .first()
    )
    if not material:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bahan tidak ditemukan")
    return material


def _ensure_unique_name(db: Session, owner_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Material).filter(
        Material.owner_id == owner_id,
        func.lower(Material.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Material.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bahan dengan nama ini sudah ada")


def _format_quantity(value: Decimal) -> str:
    return f"{Decimal(value).normalize():f}"


@router.get("", response_model=PaginatedResponse[MaterialOut])
def get_all_materials(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search_key: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    query = db.query(Material).filter(Material.owner_id == current_user.id)

    if search_key:
        query = query.filter(Material.name.icontains(search_key, autoescape=True))

    total_data = query.count()
    paginated_data = (
        query.order_by(Material.created_at.desc(), Material.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return {
        "data": paginated_data,
        "total": total_data,
    }


@router.get("/{material_id}", response_model=MaterialOut)
def get_material(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_material(db, material_id, current_user.id)


@router.post(
    "",
    response_model=MaterialOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_user)],
)
def create_material(
    material_data: MaterialCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_unique_name(db, current_user.id, material_data.name)

    material = Material(
        owner_id=current_user.id,
        **material_data.model_dump(exclude={"record_expense"}),
    )
    db.add(material)

    if material_data.record_expense and material_data.stock > 0:
        # initial stock is a purchase; it lands in the ledger in the same commit
        db.flush()
        db.add(Expense(
            owner_id=current_user.id,
            date=get_jkt_now(),
            description=(
                f"Pembelian bahan: {material.name} "
                f"({_format_quantity(material_data.stock)} {material.unit.value})"
            ),
            category=ExpenseCategoryEnum.BAHAN_BAKU,
            material_id=material.id,
            quantity=material_data.stock,
            amount=material_data.stock * material_data.price_per_unit,
        ))

    db.commit()
    db.refresh(material)
    logger.info("Material %s created by user %s", material.id, current_user.id)
    return material


@router.put("/{material_id}", response_model=MaterialOut, dependencies=[Depends(rate_limit_user)])
def update_material(
    material_id: int,
    material_data: MaterialUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    material = _get_material(db, material_id, current_user.id)

    update_data = material_data.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"].lower() != material.name.lower():
        _ensure_unique_name(db, current_user.id, update_data["name"], exclude_id=material.id)

    for field, value in update_data.items():
        # name, unit, price and stock are required columns
        if value is None and field != "description":
            continue
        setattr(material, field, value)

    db.commit()
    db.refresh(material)
    return material


@router.delete("/{material_id}", response_model=MessageResponse, dependencies=[Depends(rate_limit_user)])
def delete_material(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    material = _get_material(db, material_id, current_user.id)

    # detach bill-of-material lines and expenses, they stay as unresolved references
    db.query(ProductMaterial).filter(ProductMaterial.material_id == material.id).update(
        {ProductMaterial.material_id: None}, synchronize_session=False
    )
    db.query(Expense).filter(Expense.material_id == material.id).update(
        {Expense.material_id: None}, synchronize_session=False
    )
    db.delete(material)
    db.commit()
    logger.info("Material %s deleted by user %s", material_id, current_user.id)
    return {"message": "Bahan berhasil dihapus"}
