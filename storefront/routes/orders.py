from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import require
from storefront.schemas.order_schemas import OrderCreate, OrderOut, OrderStatusUpdate, PaymentConfirmation
from storefront.services import order_service
from storefront.utils.token import TokenClaims


router = APIRouter()


@router.get("/", response_model=List[OrderOut])
def list_orders(
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("orders:read")),
):
    orders = order_service.list_orders(session, claims.id)
    return [OrderOut.model_validate(o) for o in orders]


@router.post("/", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("orders:create")),
):
    order = order_service.create_order(session, claims.id, data.items)
    return OrderOut.model_validate(order)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("orders:read")),
):
    order = order_service.get_order(session, claims.id, order_id)
    return OrderOut.model_validate(order)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("orders:update_status")),
):
    order = order_service.update_status(session, claims.id, order_id, data.status)
    return OrderOut.model_validate(order)


@router.post(
    "/{order_id}/payment",
    response_model=OrderOut,
    dependencies=[Depends(require("orders:confirm_payment"))],
)
def confirm_payment(
    order_id: int,
    data: PaymentConfirmation,
    session: Session = Depends(get_session),
):
    order = order_service.confirm_payment(session, order_id, data.payment_reference)
    return OrderOut.model_validate(order)
