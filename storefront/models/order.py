from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.models.order_item import OrderItem


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    total_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    status: OrderStatus = Field(default=OrderStatus.PENDING)

    payment_reference: Optional[str] = None
    refund_id: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
