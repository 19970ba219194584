from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import require
from storefront.schemas.address_schemas import AddressCreate, AddressOut, AddressUpdate
from storefront.services import address_service
from storefront.utils.token import TokenClaims


router = APIRouter()


@router.get("/", response_model=List[AddressOut])
def list_addresses(
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("addresses:read")),
):
    return [AddressOut.model_validate(a) for a in address_service.list_addresses(session, claims.id)]


@router.post("/", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
def add_address(
    data: AddressCreate,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("addresses:write")),
):
    return AddressOut.model_validate(address_service.create_address(session, claims.id, data))


@router.get("/{address_id}", response_model=AddressOut)
def get_address(
    address_id: int,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("addresses:read")),
):
    return AddressOut.model_validate(address_service.get_address(session, claims.id, address_id))


@router.put("/{address_id}", response_model=AddressOut)
def update_address(
    address_id: int,
    data: AddressUpdate,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("addresses:write")),
):
    return AddressOut.model_validate(
        address_service.update_address(session, claims.id, address_id, data)
    )


@router.delete("/{address_id}")
def delete_address(
    address_id: int,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("addresses:write")),
):
    address_service.delete_address(session, claims.id, address_id)
    return {"message": "Address deleted successfully"}
