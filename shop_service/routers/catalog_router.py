from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..exceptions import CategoryNotFound, DuplicateCategory, InvalidCatalogEntry, ProductNotFound
from ..models import MAX_ID

router = APIRouter(prefix="/api", tags=["Catalog"])


@router.get("/categories", response_model=List[schemas.CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return crud.get_categories(db)


@router.post(
    "/categories",
    response_model=schemas.CategoryOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": schemas.ErrorOut}, 409: {"model": schemas.ErrorOut}},
)
def create_category(body: schemas.CategoryCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_category(db, body.model_dump())
    except ValueError:
        raise InvalidCatalogEntry("Category name is required")
    except IntegrityError:
        db.rollback()
        raise DuplicateCategory(f"Category name {body.name.strip()!r} already exists")


@router.get("/products", response_model=List[schemas.ProductOut])
def list_products(
    category_id: Optional[int] = Query(None, gt=0, le=MAX_ID, alias="categoryId", description="Only products of this category"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return crud.get_products(db, category_id=category_id, skip=skip, limit=limit)


@router.get("/products/{product_id}", response_model=schemas.ProductOut, responses={404: {"model": schemas.ErrorOut}})
def get_product(product_id: int = Path(..., gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    product = crud.get_product(db, product_id)
    if not product:
        raise ProductNotFound(f"Product with id {product_id} not found", product_id=product_id)
    return product


@router.post(
    "/products",
    response_model=schemas.ProductOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": schemas.ErrorOut}, 404: {"model": schemas.ErrorOut}},
)
def create_product(body: schemas.ProductCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_product(db, body.model_dump())
    except LookupError:
        raise CategoryNotFound(f"Category with id {body.category_id} not found")
    except ValueError:
        raise InvalidCatalogEntry("Product name is required")
