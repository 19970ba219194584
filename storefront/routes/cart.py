from fastapi import APIRouter, Depends
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import require
from storefront.schemas.cart_schemas import CartAddRequest, CartItemOut, CartOut, CartUpdateRequest
from storefront.services import cart_service
from storefront.utils.token import TokenClaims


router = APIRouter()

# View Cart

@router.get("/", response_model=CartOut)
def get_cart(
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("cart:read")),
):
    return cart_service.get_cart(session, claims.id)

# Add to Cart

@router.post("/items", response_model=CartItemOut)
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("cart:write")),
):
    item = cart_service.add_item(session, claims.id, data.product_id, data.quantity)
    return CartItemOut.model_validate(item)

# Update Cart

@router.put("/items/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("cart:write")),
):
    item = cart_service.update_item(session, claims.id, item_id, data.quantity)
    return CartItemOut.model_validate(item)

# Remove Cart

@router.delete("/items/{item_id}")
def remove_item(
    item_id: int,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("cart:write")),
):
    cart_service.remove_item(session, claims.id, item_id)
    return {"message": "Item removed from cart"}
