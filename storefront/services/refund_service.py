import logging

from sqlmodel import Session, select

from storefront.database import transaction
from storefront.errors import DependencyError, OrderNotFound, ValidationError
from storefront.models.order import Order, OrderStatus
from storefront.services.order_service import get_order
from storefront.services.payment_service import RefundGateway

logger = logging.getLogger(__name__)


def refund_order(
    session: Session,
    user_id: int,
    order_id: int,
    gateway: RefundGateway,
) -> Order:
    """
    Refund a completed order through the gateway.

    The order row stays locked from the status check until the new status is
    committed, so a concurrent refund of the same order waits and then finds
    it already refunded.
    """
    with transaction(session):
        order = session.exec(
            select(Order)
            .where(Order.id == order_id, Order.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if order is None:
            raise OrderNotFound()

        if order.status != OrderStatus.COMPLETED:
            raise ValidationError("Order is not in completed status")

        if not order.payment_reference:
            raise ValidationError("Order has no payment reference to refund")

        try:
            refund_id = gateway.create_refund(order.payment_reference)
        except DependencyError:
            raise
        except Exception as e:
            logger.error(f"Refund gateway error for order {order.id}: {e}")
            raise DependencyError("Refund could not be processed") from e

        order.refund_id = refund_id
        order.status = OrderStatus.REFUNDED
        session.add(order)

    logger.info(f"Order {order_id} refunded ({refund_id})")
    return get_order(session, user_id, order_id)
