import logging
from typing import List, Optional

from fastapi import APIRouter
from fastapi.params import Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_current_user, rate_limit_user
from models.Expense import Expense
from models.Income import Income
from models.Material import Material
from models.Product import Product, ProductMaterial
from models.User import User
from schemas.PaginatedResponseSchemas import MessageResponse, PaginatedResponse
from schemas.ProductSchemas import ProductCreate, ProductMaterialIn, ProductOut, ProductUpdate
from services.hpp_services import HppService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_product(db: Session, product_id: int, owner_id: int) -> Product:
    product = (
        db.query(Product)
        .options(selectinload(Product.materials).selectinload(ProductMaterial.material_rel))
        .filter(Product.id == product_id, Product.owner_id == owner_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produk tidak ditemukan")
    return product


def _ensure_unique_name(db: Session, owner_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Product).filter(
        Product.owner_id == owner_id,
        func.lower(Product.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Produk dengan nama ini sudah ada")


def _material_lines(db: Session, owner_id: int, materials: List[ProductMaterialIn]):
    """Every referenced material must belong to the caller."""
    ids = {line.material_id for line in materials}
    if ids:
        found = {
            row.id
            for row in db.query(Material.id).filter(Material.owner_id == owner_id, Material.id.in_(ids)).all()
        }
        missing = ids - found
        if missing:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bahan tidak ditemukan")
    return [(line.material_id, line.quantity) for line in materials]


@router.get("", response_model=PaginatedResponse[ProductOut])
def get_all_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search_key: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    query = db.query(Product).filter(Product.owner_id == current_user.id)

    if search_key:
        query = query.filter(Product.name.icontains(search_key, autoescape=True))

    total_data = query.count()
    paginated_data = (
        query.options(selectinload(Product.materials).selectinload(ProductMaterial.material_rel))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return {
        "data": paginated_data,
        "total": total_data,
    }


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_product(db, product_id, current_user.id)


@router.post(
    "",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_user)],
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_unique_name(db, current_user.id, product_data.name)
    lines = _material_lines(db, current_user.id, product_data.materials)

    product = Product(
        owner_id=current_user.id,
        name=product_data.name,
        description=product_data.description,
        selling_price=product_data.selling_price,
    )
    HppService.apply_materials(db, product, lines)

    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product %s created by user %s with hpp %s", product.id, current_user.id, product.hpp)
    return product


@router.put("/{product_id}", response_model=ProductOut, dependencies=[Depends(rate_limit_user)])
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_product(db, product_id, current_user.id)

    update_data = product_data.model_dump(exclude_unset=True, exclude={"materials"})
    if update_data.get("name") and update_data["name"].lower() != product.name.lower():
        _ensure_unique_name(db, current_user.id, update_data["name"], exclude_id=product.id)

    for field, value in update_data.items():
        if value is None and field != "description":
            continue
        setattr(product, field, value)

    # hpp is only re-costed when the bill of materials is written
    if product_data.materials is not None:
        lines = _material_lines(db, current_user.id, product_data.materials)
        HppService.apply_materials(db, product, lines)

    db.commit()
    db.refresh(product)
    return product


@router.post(
    "/{product_id}/recalculate-hpp",
    response_model=ProductOut,
    dependencies=[Depends(rate_limit_user)],
)
def recalculate_product_hpp(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Re-costs the stored bill of materials at today's material prices."""
    product = _get_product(db, product_id, current_user.id)
    HppService.recalculate(db, product)
    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", response_model=MessageResponse, dependencies=[Depends(rate_limit_user)])
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_product(db, product_id, current_user.id)

    # ledger rows outlive the product
    db.query(Income).filter(Income.product_id == product.id).update(
        {Income.product_id: None}, synchronize_session=False
    )
    db.query(Expense).filter(Expense.product_id == product.id).update(
        {Expense.product_id: None}, synchronize_session=False
    )
    db.delete(product)
    db.commit()
    logger.info("Product %s deleted by user %s", product_id, current_user.id)
    return {"message": "Produk berhasil dihapus"}
