from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import require
from storefront.schemas.catalog_schemas import CategoryCreate, CategoryOut, CategoryUpdate, ProductOut
from storefront.services import catalog_service


router = APIRouter()


@router.get("/", response_model=List[CategoryOut])
def list_categories(session: Session = Depends(get_session)):
    return [CategoryOut.model_validate(c) for c in catalog_service.list_categories(session)]


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, session: Session = Depends(get_session)):
    return CategoryOut.model_validate(catalog_service.get_category(session, category_id))


@router.get("/{category_id}/products", response_model=List[ProductOut])
def list_category_products(category_id: int, session: Session = Depends(get_session)):
    catalog_service.get_category(session, category_id)
    products = catalog_service.list_products(session, category_id=category_id)
    return [ProductOut.model_validate(p) for p in products]


@router.post(
    "/",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require("categories:write"))],
)
def create_category(data: CategoryCreate, session: Session = Depends(get_session)):
    return CategoryOut.model_validate(catalog_service.create_category(session, data))


@router.put("/{category_id}", response_model=CategoryOut, dependencies=[Depends(require("categories:write"))])
def update_category(category_id: int, data: CategoryUpdate, session: Session = Depends(get_session)):
    return CategoryOut.model_validate(catalog_service.update_category(session, category_id, data))


@router.delete("/{category_id}", dependencies=[Depends(require("categories:write"))])
def delete_category(category_id: int, session: Session = Depends(get_session)):
    catalog_service.delete_category(session, category_id)
    return {"message": "Category deleted"}
