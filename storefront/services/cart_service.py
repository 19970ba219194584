import logging
from datetime import datetime
from decimal import Decimal

from sqlmodel import Session, select

from storefront.database import transaction, upsert_insert
from storefront.errors import CartItemNotFound, InvalidQuantity, ProductNotFound
from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product

logger = logging.getLogger(__name__)


def validate_quantity(quantity) -> int:
    # bool is an int subclass; True must not count as one unit
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity()
    return quantity


def _ensure_cart(session: Session, user_id: int) -> Cart:
    """Get-or-create inside the caller's transaction."""
    now = datetime.utcnow()
    stmt = upsert_insert(session, Cart.__table__).values(
        user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    session.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))

    return session.exec(select(Cart).where(Cart.user_id == user_id)).one()


def _owned_item(session: Session, user_id: int, item_id: int) -> CartItem:
    # unknown item and someone else's item look the same to the caller
    item = session.exec(
        select(CartItem)
        .join(Cart, CartItem.cart_id == Cart.id)
        .where(CartItem.id == item_id, Cart.user_id == user_id)
    ).first()

    if item is None:
        raise CartItemNotFound()
    return item


def get_or_create(session: Session, user_id: int) -> Cart:
    with transaction(session):
        cart = _ensure_cart(session, user_id)
    session.refresh(cart)
    return cart


def get_cart(session: Session, user_id: int) -> dict:
    cart = get_or_create(session, user_id)

    rows = session.exec(
        select(CartItem, Product)
        .join(Product, CartItem.product_id == Product.id)
        .where(CartItem.cart_id == cart.id)
        .order_by(CartItem.id)
    ).all()

    items = []
    subtotal = Decimal("0")

    for cart_item, product in rows:
        line_total = product.price * cart_item.quantity
        subtotal += line_total

        items.append({
            "id": cart_item.id,
            "product_id": product.id,
            "name": product.name,
            "price": product.price,
            "quantity": cart_item.quantity,
            "is_active": product.is_active,
            "total": line_total,
        })

    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "created_at": cart.created_at,
        "updated_at": cart.updated_at,
        "items": items,
        "subtotal": subtotal,
    }


def add_item(session: Session, user_id: int, product_id: int, quantity: int) -> CartItem:
    validate_quantity(quantity)

    with transaction(session):
        product = session.get(Product, product_id)
        if not product or not product.is_active:
            raise ProductNotFound()

        cart = _ensure_cart(session, user_id)

        table = CartItem.__table__
        stmt = upsert_insert(session, table).values(
            cart_id=cart.id,
            product_id=product_id,
            quantity=quantity,
        )
        # repeated adds of the same product grow one row
        stmt = stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={"quantity": table.c.quantity + stmt.excluded.quantity},
        )
        session.execute(stmt)

        cart.updated_at = datetime.utcnow()
        session.add(cart)

        item = session.exec(
            select(CartItem)
            .where(CartItem.cart_id == cart.id, CartItem.product_id == product_id)
            .execution_options(populate_existing=True)
        ).one()

    session.refresh(item)
    logger.info(f"Cart {item.cart_id}: product {product_id} quantity now {item.quantity}")
    return item


def update_item(session: Session, user_id: int, item_id: int, quantity: int) -> CartItem:
    validate_quantity(quantity)

    with transaction(session):
        item = _owned_item(session, user_id, item_id)
        item.quantity = quantity
        session.add(item)

    session.refresh(item)
    return item


def remove_item(session: Session, user_id: int, item_id: int) -> None:
    with transaction(session):
        item = _owned_item(session, user_id, item_id)
        session.delete(item)
