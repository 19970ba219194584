from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storefront.models.order import OrderStatus


class OrderLineIn(BaseModel):
    product_id: int
    quantity: int


class OrderCreate(BaseModel):
    items: List[OrderLineIn]


class OrderStatusUpdate(BaseModel):
    # plain str so an unknown value reaches the service and maps to InvalidStatus
    status: str


class PaymentConfirmation(BaseModel):
    payment_reference: str


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    total_amount: Decimal
    status: OrderStatus
    payment_reference: Optional[str] = None
    refund_id: Optional[str] = None
    created_at: datetime
    items: List[OrderItemOut]


class RefundRequest(BaseModel):
    order_id: int


class RefundOut(BaseModel):
    success: bool = True
    refund_id: str
    order: OrderOut
