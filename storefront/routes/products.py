from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import require
from storefront.schemas.catalog_schemas import ProductCreate, ProductOut, ProductUpdate
from storefront.services import catalog_service


router = APIRouter()


@router.get("/", response_model=List[ProductOut])
def list_products(category_id: Optional[int] = None, session: Session = Depends(get_session)):
    return [ProductOut.model_validate(p) for p in catalog_service.list_products(session, category_id)]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, session: Session = Depends(get_session)):
    return ProductOut.model_validate(catalog_service.get_product(session, product_id))


@router.post(
    "/",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require("products:write"))],
)
def create_product(data: ProductCreate, session: Session = Depends(get_session)):
    return ProductOut.model_validate(catalog_service.create_product(session, data))


@router.put("/{product_id}", response_model=ProductOut, dependencies=[Depends(require("products:write"))])
def update_product(product_id: int, data: ProductUpdate, session: Session = Depends(get_session)):
    return ProductOut.model_validate(catalog_service.update_product(session, product_id, data))


@router.delete("/{product_id}", dependencies=[Depends(require("products:write"))])
def delete_product(product_id: int, session: Session = Depends(get_session)):
    catalog_service.delete_product(session, product_id)
    return {"message": "Product deleted"}
