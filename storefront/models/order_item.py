from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING
from decimal import Decimal

if TYPE_CHECKING:
    from storefront.models.order import Order

class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id")

    quantity: int
    price: Decimal = Field(max_digits=10, decimal_places=2)  # unit price at purchase time

    order: Optional["Order"] = Relationship(back_populates="items")
