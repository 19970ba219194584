import logging
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from storefront.constants.order_status import ALLOWED_TRANSITIONS
from storefront.database import transaction
from storefront.errors import (
    ConflictError,
    EmptyOrder,
    InvalidStatus,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
    ValidationError,
)
from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.services.cart_service import validate_quantity

logger = logging.getLogger(__name__)


def _load_order(session: Session, order_id: int, user_id: int) -> Order:
    order = session.exec(
        select(Order)
        .where(Order.id == order_id, Order.user_id == user_id)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    ).first()

    if order is None:
        raise OrderNotFound()
    return order


def create_order(session: Session, user_id: int, items: Iterable) -> Order:
    """
    Turn line items into a persisted order, all or nothing.

    ``items`` is a sequence of objects with ``product_id`` and ``quantity``.
    Prices come from the catalog at this moment and are copied onto each
    order item; the client never supplies them. If any product is missing
    the whole order is rolled back and nothing is stored.
    """
    items = list(items)
    if not items:
        raise EmptyOrder()

    for line in items:
        validate_quantity(line.quantity)

    with transaction(session):
        order = Order(user_id=user_id, total_amount=Decimal("0"), status=OrderStatus.PENDING)
        session.add(order)
        session.flush()

        total_amount = Decimal("0")

        for line in items:
            product = session.get(Product, line.product_id)
            if not product or not product.is_active:
                raise ProductNotFound(f"Product not found: {line.product_id}")

            price = product.price
            total_amount += price * line.quantity

            session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=line.quantity,
                price=price,
            ))

        order.total_amount = total_amount
        session.add(order)

    logger.info(f"Order {order.id} created for user {user_id}: total {total_amount}")

    return _load_order(session, order.id, user_id)


def get_order(session: Session, user_id: int, order_id: int) -> Order:
    return _load_order(session, order_id, user_id)


def list_orders(session: Session, user_id: int) -> List[Order]:
    return session.exec(
        select(Order)
        .where(Order.user_id == user_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()


def update_status(
    session: Session,
    user_id: int,
    order_id: int,
    new_status: str,
) -> Order:
    try:
        new_status = OrderStatus(new_status)
    except ValueError as e:
        raise InvalidStatus() from e

    with transaction(session):
        order = _load_order(session, order_id, user_id)

        if order.status != new_status:
            if new_status not in ALLOWED_TRANSITIONS[order.status]:
                raise InvalidStatusTransition(
                    f"Cannot change order from {order.status.value} to {new_status.value}"
                )

            order.status = new_status
            logger.info(f"Order {order.id} moved to {new_status.value}")

        session.add(order)

    return _load_order(session, order_id, user_id)


def confirm_payment(session: Session, order_id: int, payment_reference: str) -> Order:
    """
    Record the gateway's payment reference and complete the order.

    Only the payment side of the system calls this. A stored reference is
    never replaced, since refunds are sent to it.
    """
    if not payment_reference or not payment_reference.strip():
        raise ValidationError("Payment reference is required")
    payment_reference = payment_reference.strip()

    with transaction(session):
        order = session.exec(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if order is None:
            raise OrderNotFound()

        if order.payment_reference and order.payment_reference != payment_reference:
            raise ConflictError("Order already has a payment reference")

        if order.status == OrderStatus.PENDING:
            order.status = OrderStatus.COMPLETED
        elif order.status != OrderStatus.COMPLETED:
            raise InvalidStatusTransition(
                f"Cannot confirm payment for a {order.status.value} order"
            )

        order.payment_reference = payment_reference
        session.add(order)
        user_id = order.user_id

    logger.info(f"Order {order_id} paid ({payment_reference})")
    return _load_order(session, order_id, user_id)
