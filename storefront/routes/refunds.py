from fastapi import APIRouter, Depends
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import require
from storefront.schemas.order_schemas import OrderOut, RefundOut, RefundRequest
from storefront.services.payment_service import RefundGateway, get_refund_gateway
from storefront.services.refund_service import refund_order
from storefront.utils.token import TokenClaims


router = APIRouter()


@router.post("/", response_model=RefundOut)
def create_refund(
    data: RefundRequest,
    session: Session = Depends(get_session),
    claims: TokenClaims = Depends(require("refunds:create")),
    gateway: RefundGateway = Depends(get_refund_gateway),
):
    order = refund_order(session, claims.id, data.order_id, gateway)
    return RefundOut(refund_id=order.refund_id, order=OrderOut.model_validate(order))
