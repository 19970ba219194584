from pydantic import BaseModel, ConfigDict
from typing import List
from datetime import datetime
from decimal import Decimal


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = 1


class CartUpdateRequest(BaseModel):
    quantity: int


class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cart_id: int
    product_id: int
    quantity: int


class CartLine(BaseModel):
    id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    is_active: bool
    total: Decimal


class CartOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime
    items: List[CartLine]
    subtotal: Decimal
